from courtcases.scraper import logging_utils


def test_scraper_event_label_and_phase(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._scraper_event("state", phase="retry_decision", kind="capped")

    assert events
    line = events[-1]
    assert line.startswith("[SCRAPER][STATE]")
    assert "phase='retry_decision'" in line
    assert "kind='capped'" in line


def test_scraper_event_never_raises(monkeypatch):
    def _boom(msg):
        raise OSError("log file gone")

    monkeypatch.setattr(logging_utils, "log_line", _boom)

    logging_utils._scraper_event("case", case_id="CR2012345")
