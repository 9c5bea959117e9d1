from typer.testing import CliRunner

from treasury_intel.cli import app


runner = CliRunner()


def _invoke(tmp_path, *args):
    return runner.invoke(app, ["--data-dir", str(tmp_path), "--no-log-file", *args])


def test_settings_show_and_update(tmp_path):
    result = _invoke(tmp_path, "settings")
    assert result.exit_code == 0
    assert "news_feed_days: 2" in result.output

    result = _invoke(tmp_path, "settings", "--news-feed-days", "5")
    assert result.exit_code == 0
    assert "news_feed_days: 5" in result.output
    assert "news_feed_days: 5" in _invoke(tmp_path, "settings").output

    assert _invoke(tmp_path, "settings", "--news-feed-days", "0").exit_code == 2


def test_news_on_empty_cache(tmp_path):
    result = _invoke(tmp_path, "news")
    assert result.exit_code == 0
    assert "No news items" in result.output


def test_news_rejects_unknown_category(tmp_path):
    assert _invoke(tmp_path, "news", "--category", "crypto").exit_code == 2


def test_briefing_without_news_exits_cleanly(tmp_path):
    result = _invoke(tmp_path, "--api-key", "sk-test", "briefing")
    assert result.exit_code == 1
    assert "Run a news refresh first" in result.output


def test_briefing_rejects_bad_date(tmp_path):
    assert _invoke(tmp_path, "briefing", "--date", "19/10/2026").exit_code == 2


def test_briefing_and_chat_report_missing_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    result = _invoke(tmp_path, "briefing")
    assert result.exit_code == 1
    assert "Missing API key" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)

    result = _invoke(tmp_path, "chat", "--message", "Any liquidity risks?")
    assert result.exit_code == 1
    assert "Missing API key" in result.output
