"""Tests for Langfuse tracing setup and span helpers."""

from __future__ import annotations

import sys
import types

from treasury_intel.config import LangfuseConfig
from treasury_intel.llm import tracing


class _DummySpan:
    def __init__(self):
        self.updates: list[dict] = []

    def update(self, **kwargs):
        self.updates.append(kwargs)


class _DummySpanContext:
    def __init__(self, span):
        self.span = span
        self.exited = False

    def __enter__(self):
        return self.span

    def __exit__(self, *exc):
        self.exited = True
        return False


def _install_fake_langfuse(monkeypatch, captured: dict):
    class DummyLangfuse:
        def __init__(self, **kwargs):
            captured.update(kwargs)
            self.spans: list[dict] = []
            self.flushed = False

        def start_as_current_span(self, **kwargs):
            self.spans.append(kwargs)
            return _DummySpanContext(_DummySpan())

        def flush(self):
            self.flushed = True

    monkeypatch.setitem(sys.modules, "langfuse", types.SimpleNamespace(Langfuse=DummyLangfuse))
    monkeypatch.setattr(tracing, "_TRACER", None)
    monkeypatch.setattr(tracing, "_CFG", None)


def test_setup_langfuse_reads_keys_from_env(monkeypatch):
    captured: dict = {}
    _install_fake_langfuse(monkeypatch, captured)
    monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
    monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")
    monkeypatch.delenv("LANGFUSE_HOST", raising=False)

    tracing.setup_langfuse(LangfuseConfig(enabled=True, host="https://cloud.example.com"))

    assert captured["public_key"] == "pk-test"
    assert captured["secret_key"] == "sk-test"
    assert captured["host"] == "https://cloud.example.com"
    assert tracing.get_tracer() is not None


def test_setup_langfuse_disables_tracer_when_keys_missing(monkeypatch):
    _install_fake_langfuse(monkeypatch, {})
    monkeypatch.delenv("LANGFUSE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("LANGFUSE_SECRET_KEY", raising=False)

    tracing.setup_langfuse(LangfuseConfig(enabled=True))

    assert tracing.get_tracer() is None


def test_spans_are_noops_without_tracer(monkeypatch):
    monkeypatch.setattr(tracing, "_TRACER", None)
    with tracing.start_span("classify", kind="llm", input_value="prompt") as span:
        assert span is None
        tracing.set_span_output(span, "ignored")
        tracing.record_span_error(span, RuntimeError("ignored"))
    tracing.flush()


def test_span_records_output_errors_and_truncates(monkeypatch):
    _install_fake_langfuse(monkeypatch, {})
    tracing.setup_langfuse(
        LangfuseConfig(enabled=True, public_key="pk", secret_key="sk", max_text_chars=10)
    )
    tracer = tracing.get_tracer()

    with tracing.start_span(
        "anthropic.messages",
        kind="llm",
        input_value=[{"role": "user", "content": "hello"}],
        attributes={"llm.model": "claude", "llm.tools": 2, "skip": None},
    ) as span:
        tracing.set_span_output(span, "x" * 50)
        tracing.record_span_error(span, RuntimeError("boom"))

    started = tracer.spans[0]
    assert started["name"] == "anthropic.messages"
    assert started["input"].endswith("...(truncated)")
    assert started["metadata"] == {"llm.model": "claude", "llm.tools": 2, "span.kind": "llm"}
    assert span.updates == [
        {"output": "x" * 10 + "...(truncated)"},
        {"level": "ERROR", "status_message": "boom"},
    ]

    tracing.flush()
    assert tracer.flushed


def test_llm_span_names_span_and_masks_credentials(monkeypatch):
    _install_fake_langfuse(monkeypatch, {})
    tracing.setup_langfuse(LangfuseConfig(enabled=True, public_key="pk", secret_key="sk"))
    tracer = tracing.get_tracer()

    with tracing.llm_span("gemini", "generate_content", "gemini-test", [{"text": "hi"}], 1) as span:
        tracing.record_span_error(span, RuntimeError("500 for https://host/v1beta?key=AIzaSECRET"))

    assert tracer.spans[0]["name"] == "gemini.generate_content"
    assert tracer.spans[0]["metadata"]["llm.tools"] == 1
    assert span.updates == [
        {"level": "ERROR", "status_message": "500 for https://host/v1beta?key=[REDACTED]"}
    ]
