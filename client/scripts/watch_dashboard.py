"""Follow a student or company dashboard and print every update as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict, is_dataclass
from typing import Any

from dashsync import build_container
from dashsync.domain.dashboard.activity import build_activity_feed
from dashsync.domain.dashboard.models import SubjectType


def _parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(description="Watch a live recruitment dashboard")
	parser.add_argument("subject_id", help="Student user id or company id")
	parser.add_argument("--company", action="store_true", help="Watch company counters instead of a student")
	parser.add_argument("--token", help="Bearer token (defaults to AUTH_TOKEN)")
	parser.add_argument("--seconds", type=float, default=0.0, help="Stop after N seconds (0 = forever)")
	return parser.parse_args()


def _jsonable(value: Any) -> Any:
	if is_dataclass(value):
		return asdict(value)
	return value


def _printer(name: str):
	def _print(payload: Any) -> None:
		print(json.dumps({"event": name, "payload": _jsonable(payload)}, default=str, ensure_ascii=False))

	return _print


async def watch(subject_id: str, *, company: bool, token: str | None, seconds: float) -> None:
	role = SubjectType.COMPANY if company else SubjectType.STUDENT
	container = build_container(role, token_provider=(lambda: token) if token else None)
	try:
		if container.company is not None:
			for name in ("stats_updated", "jobs_updated", "new_application", "application_status_update", "notification"):
				container.company.on(name, _printer(name))
			await container.company.start(subject_id)
		elif container.student is not None:
			for name in ("data-updated", "stats_updated", "notification"):
				container.student.on(name, _printer(name))
			await container.student.initialize(subject_id)
			snapshot = container.student.get_current_snapshot()
			if snapshot is not None:
				for item in build_activity_feed(snapshot, limit=10):
					print(f"{item.time:>14}  {item.title}  {item.company}")
		if seconds > 0:
			await asyncio.sleep(seconds)
		else:
			await asyncio.Event().wait()
	finally:
		await container.aclose()


def main() -> None:
	args = _parse_args()
	try:
		asyncio.run(watch(args.subject_id, company=args.company, token=args.token, seconds=args.seconds))
	except KeyboardInterrupt:
		pass


if __name__ == "__main__":
	main()
