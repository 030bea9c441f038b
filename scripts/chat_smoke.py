#!/usr/bin/env python3
from __future__ import annotations

import asyncio
import importlib
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx


@dataclass
class Scenario:
  name: str
  message: str


def _ensure_backend_on_path(repo_root: Path) -> None:
  backend_dir = repo_root / "backend"
  if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def _transport_and_url() -> tuple[httpx.AsyncBaseTransport | None, str]:
  url = (os.getenv("HEALTH_CHAT_URL") or "").strip()
  if url:
    return None, url
  # No remote relay configured: drive the in-process app.
  backend_module = importlib.import_module("main")
  return httpx.ASGITransport(app=backend_module.app), "http://relay.local/health-ai-chat"


async def run_scenarios(scenarios: list[Scenario]) -> list[dict[str, Any]]:
  from chat_client import ChatSession

  transport, url = _transport_and_url()
  session = ChatSession(url, transport=transport)
  results: list[dict[str, Any]] = []
  for scenario in scenarios:
    before = len(session.messages)
    errors_before = len(session.notifications)
    await session.send_message(scenario.message)
    new_messages = session.messages[before:]
    replies = [message.content for message in new_messages if message.role == "assistant"]
    errors = [notification.description for notification in session.notifications[errors_before:]]
    results.append(
      {
        "name": scenario.name,
        "message": scenario.message,
        "reply": replies[-1] if replies else "",
        "assistant_messages": len(replies),
        "errors": errors,
        "pass": len(replies) == 1 and bool(replies[0].strip()) and not errors,
      }
    )
  return results


def run() -> int:
  repo_root = Path(__file__).resolve().parents[1]
  _ensure_backend_on_path(repo_root)

  if len(sys.argv) > 1:
    scenarios = [Scenario(name=f"Prompt {idx + 1}", message=text) for idx, text in enumerate(sys.argv[1:])]
  else:
    scenarios = [
      Scenario(name="Vitals Question", message="My resting heart rate is 88 bpm. Is that normal?"),
      Scenario(name="Medication Follow-up", message="I forgot my blood pressure pill this morning. What should I do?"),
      Scenario(name="Conversation Continuity", message="Can you summarize what we talked about?"),
    ]

  results = asyncio.run(run_scenarios(scenarios))

  passed = sum(1 for item in results if item.get("pass"))
  failed = len(results) - passed
  timestamp = datetime.now(timezone.utc).isoformat()

  report_lines = [
    "# Health Chat Smoke Report",
    "",
    f"- Timestamp (UTC): `{timestamp}`",
    f"- HEALTH_CHAT_URL: `{os.getenv('HEALTH_CHAT_URL') or 'in-process'}`",
    f"- GEMINI_MODEL: `{os.getenv('GEMINI_MODEL') or 'default'}`",
    f"- Total scenarios: `{len(results)}`",
    f"- Passed: `{passed}`",
    f"- Failed: `{failed}`",
    "",
    "## Scenario Results",
    "",
  ]

  for item in results:
    status = "PASS" if item.get("pass") else "FAIL"
    report_lines.append(f"### {status} - {item['name']}")
    report_lines.append(f"- Prompt: `{item['message']}`")
    report_lines.append(f"- Assistant messages this turn: `{item['assistant_messages']}`")
    for error in item["errors"]:
      report_lines.append(f"- Error: `{error}`")
    preview = item.get("reply") or ""
    if preview:
      report_lines.append(f"- Reply preview: `{preview[:240]}`")
    report_lines.append("")

  report_path = repo_root / "CHAT_SMOKE_REPORT.md"
  report_path.write_text("\n".join(report_lines), encoding="utf-8")
  print(f"Wrote report: {report_path}")
  print(f"Passed {passed}/{len(results)} scenarios.")

  return 0 if failed == 0 else 1


if __name__ == "__main__":
  raise SystemExit(run())
