"""Unit tests for logging helpers."""

import logging

from taskpilot.utils.logging_utils import log_prompt, log_routing_decision


def test_log_prompt_truncates(caplog):
    logger = logging.getLogger("tests.prompts")
    with caplog.at_level(logging.DEBUG, logger="tests.prompts"):
        log_prompt(logger, "plan", "x" * 300, max_length=100)

    message = caplog.records[-1].getMessage()
    assert message.startswith("Prompt for plan:")
    assert message.endswith("x" * 100 + "... (truncated)")


def test_log_prompt_keeps_short_prompts(caplog):
    logger = logging.getLogger("tests.prompts")
    with caplog.at_level(logging.DEBUG, logger="tests.prompts"):
        log_prompt(logger, "thought", "short", max_length=100)

    assert caplog.records[-1].getMessage() == "Prompt for thought:\nshort"


def test_log_routing_decision(caplog):
    logger = logging.getLogger("tests.routing")
    with caplog.at_level(logging.INFO, logger="tests.routing"):
        log_routing_decision(logger, "reflect", "end", "Goal achieved")

    assert any("end" in record.getMessage() for record in caplog.records)
