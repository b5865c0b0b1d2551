"""Presentation of a job outcome: step outputs and a Markdown summary."""

import json
import uuid
from pathlib import Path
from typing import Dict, List, Optional
from .models import JobOutcome, JobStatus


def outcome_error(outcome: JobOutcome) -> Optional[str]:
    snapshot = outcome.snapshot
    return snapshot.error or snapshot.reason


def outcome_outputs(outcome: JobOutcome) -> Dict[str, str]:
    """Flatten the outcome into string outputs for the calling workflow."""
    snapshot = outcome.snapshot
    result = snapshot.result
    outputs = {
        "status": snapshot.status.value,
        "success": "true" if result and result.success else "false",
        "timed-out": "true" if outcome.timed_out else "false",
        "job-id": snapshot.id or outcome.job_id,
    }

    if result:
        outputs["result"] = json.dumps(result.to_wire())
        outputs["explanation"] = result.explanation or ""
        outputs["data"] = json.dumps(result.data or {})
    if snapshot.cost_usd is not None:
        outputs["cost-usd"] = str(snapshot.cost_usd)
    if snapshot.test_duration_seconds is not None:
        outputs["duration-seconds"] = str(snapshot.test_duration_seconds)

    error = outcome_error(outcome)
    if error:
        outputs["error"] = error
    if snapshot.tester_alias:
        outputs["tester-alias"] = snapshot.tester_alias
    if snapshot.tester_avatar_url:
        outputs["tester-avatar-url"] = snapshot.tester_avatar_url
    if snapshot.tester_color:
        outputs["tester-color"] = snapshot.tester_color
    if snapshot.tester_data:
        outputs["tester-data"] = json.dumps(snapshot.tester_data)
    if snapshot.tester_response:
        outputs["tester-response"] = snapshot.tester_response
    return outputs


def write_outputs(path: Path, outputs: Dict[str, str]) -> None:
    """Append outputs to a GitHub-style output file."""
    lines = []
    for key, value in outputs.items():
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            lines.append(f"{key}<<{delimiter}\n{value}\n{delimiter}")
        else:
            lines.append(f"{key}={value}")
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")


def failure_reason(outcome: JobOutcome) -> Optional[str]:
    """Why this outcome counts as a failed test, or None if it passed."""
    snapshot = outcome.snapshot
    result = snapshot.result
    if snapshot.status == JobStatus.COMPLETED and result and result.success:
        return None

    if snapshot.status != JobStatus.COMPLETED:
        prefix = f"Test {snapshot.status.value}"
        if outcome.timed_out:
            prefix += " (timed out)"
    else:
        prefix = "Test failed"
    detail = (result.explanation if result else None) or outcome_error(outcome) or "Unknown error"
    return f"{prefix}: {detail}"


def _count(items: object) -> int:
    return len(items) if isinstance(items, list) else 0


def render_summary(outcome: JobOutcome, tested_url: str) -> str:
    """Markdown report of the outcome."""
    snapshot = outcome.snapshot
    result = snapshot.result
    passed = snapshot.status == JobStatus.COMPLETED and result is not None and result.success
    duration = (
        f"{snapshot.test_duration_seconds:g}s" if snapshot.test_duration_seconds else "N/A"
    )
    cost = f"${snapshot.cost_usd:.4f}" if snapshot.cost_usd else "N/A"

    lines: List[str] = [
        "## Human QA Test Results",
        "",
        f"{'✅' if passed else '❌'} **Status:** {snapshot.status.value}",
        "",
    ]
    if outcome.timed_out:
        lines += ["⚠️ Stopped waiting before the job finished.", ""]

    lines += [
        "### Test Details",
        "",
        "| Property | Value |",
        "| --- | --- |",
        f"| URL | {tested_url} |",
        f"| Job | {snapshot.id or outcome.job_id} |",
        f"| Duration | {duration} |",
        f"| Cost | {cost} |",
        "",
    ]

    if result:
        lines += ["### Tester Findings", ""]
        lines += [f"> {line}" for line in (result.explanation or "").splitlines() or [""]]
        lines.append("")
        if result.data:
            lines += [
                "### Extracted Data",
                "",
                "```json",
                json.dumps(result.data, indent=2),
                "```",
                "",
            ]

    error = outcome_error(outcome)
    if error:
        lines += ["### Error Details", "", "```", error, "```", ""]

    tester_data = snapshot.tester_data or {}
    screenshots = _count(tester_data.get("screenshots"))
    if screenshots:
        lines += ["### Screenshots", "", f"{screenshots} screenshot(s) captured", ""]
    video_url = tester_data.get("videoUrl")
    if video_url:
        lines += ["### Session Recording", "", f"[View video]({video_url})", ""]
    console_messages = _count(tester_data.get("consoleMessages"))
    if console_messages:
        lines += ["### Console Messages", "", f"{console_messages} console message(s) logged", ""]
    network_requests = _count(tester_data.get("networkRequests"))
    if network_requests:
        lines += ["### Network Requests", "", f"{network_requests} network request(s) captured", ""]

    lines += ["---", "Powered by [Runhuman](https://runhuman.com) - Human-powered QA testing", ""]
    return "\n".join(lines)
