import pytest
from loguru import logger

from genmigrate import logs


def capture():
    lines = []
    sink_id = logger.add(lambda msg: lines.append(str(msg)), level="DEBUG")
    return lines, sink_id


def test_warning_echoes_to_stderr(capsys):
    logs.warning("[Test] keyfile records matched no validator")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "keyfile records matched no validator" in captured.err


def test_catch_logs_and_reraises():
    @logs.catch(msg="boom expected")
    def explode():
        raise ValueError("bad")

    lines, sink_id = capture()
    with pytest.raises(ValueError):
        explode()
    logger.remove(sink_id)

    assert any("explode: boom expected" in line for line in lines)


def test_catch_logs_time():
    @logs.catch()
    def fine():
        return 42

    lines, sink_id = capture()
    assert fine() == 42
    logger.remove(sink_id)

    assert any("[TIME] fine took" in line for line in lines)


def test_reconfigure_creates_log_dir(tmp_path):
    target = tmp_path / "nested" / "logs"
    old = (logs.log_dir, logs.rotation, logs.retention, logs.level)

    logs.reconfigure(str(target), "1 day", "1 day", "DEBUG")
    try:
        assert target.is_dir()
        assert logs.level == "DEBUG"
    finally:
        logs.reconfigure(*old)
