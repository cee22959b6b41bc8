"""Deterministic serialization for authorship logs and reports."""

import json
import logging
from typing import Any, Dict, List, Optional

from .errors import AuthorshipValidationError
from .models import AuthorshipLog, Report

logger = logging.getLogger(__name__)


class DeterministicSerializer:
    """Handles deterministic JSON serialization with stable ordering."""

    def log_to_dict(self, log: AuthorshipLog) -> Dict[str, Any]:
        """Serialize an authorship log; files are keyed by path, authors keep their order."""
        return log.to_dict()

    def log_to_json(self, log: AuthorshipLog) -> str:
        """Render an authorship log as the JSON text stored in a git note."""
        return json.dumps(
            self.log_to_dict(log),
            ensure_ascii=False,
            sort_keys=True,
            indent=2,
        )

    def log_from_json(self, text: str, commit: Optional[str] = None) -> AuthorshipLog:
        """Parse note text back into an authorship log."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AuthorshipValidationError(f"note is not valid JSON: {exc}", commit=commit) from exc
        if not isinstance(data, dict):
            raise AuthorshipValidationError("note must contain a JSON object", commit=commit)
        try:
            return AuthorshipLog.from_dict(data)
        except (ValueError, TypeError, AttributeError, KeyError) as exc:
            raise AuthorshipValidationError(f"note is malformed: {exc}", commit=commit) from exc

    def serialize_report(self, report: Report) -> Dict[str, Any]:
        """Serialize a report with authors by descending lines and files by path."""
        logger.debug(
            "Serializing report",
            extra={"range": report.range, "authors": len(report.by_author), "files": len(report.by_file)},
        )
        authors = sorted(report.by_author, key=lambda a: (-a.lines, a.name, a.type))
        files = sorted(report.by_file, key=lambda f: f.path)

        payload: Dict[str, Any] = {
            "range": report.range,
            "commits": report.commits,
            "summary": report.summary.to_dict(),
            "by_author": [a.to_dict() for a in authors],
            "by_file": [f.to_dict() for f in files],
        }
        if report.metrics is not None:
            payload["metrics"] = report.metrics.to_dict()
        if report.target_ai_percentage is not None:
            payload["target"] = self._target_progress(
                report.summary.ai_percentage, report.target_ai_percentage
            )
        return payload

    def _target_progress(self, actual: float, target: float) -> Dict[str, Any]:
        progress = round(actual / target * 100, 1) if target else 100.0
        return {"ai_percentage": target, "reached": actual >= target, "progress": progress}

    def to_json_string(self, payload: Dict[str, Any]) -> str:
        """Convert payload to pretty-printed JSON string."""
        return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)

    def render_report_table(self, report: Report) -> str:
        """Plain-text table of a report for terminal output."""
        payload = self.serialize_report(report)
        summary = payload["summary"]
        lines: List[str] = [
            f"Range: {payload['range']}",
            f"Commits: {payload['commits']}",
            f"Total lines: {summary['total_lines']}",
            f"AI lines: {summary['ai_lines']} ({summary['ai_percentage']:.1f}%)",
            f"Human lines: {summary['human_lines']}",
        ]
        if "target" in payload:
            target = payload["target"]
            status = "reached" if target["reached"] else f"{target['progress']:.1f}% of target"
            lines.append(f"Target AI: {target['ai_percentage']:.1f}% ({status})")
        lines += [
            "",
            f"{'Author':<30} {'Type':<6} {'Lines':>8} {'Commits':>8} {'Share':>7}",
        ]
        for author in payload["by_author"]:
            lines.append(
                f"{author['name'][:30]:<30} {author['type']:<6} {author['lines']:>8} "
                f"{author['commits']:>8} {author['percentage']:>6.1f}%"
            )
        if payload["by_file"]:
            lines.append("")
            lines.append(f"{'File':<50} {'Total':>8} {'AI':>8} {'Human':>8}")
            for stats in payload["by_file"]:
                lines.append(
                    f"{stats['path'][-50:]:<50} {stats['total_lines']:>8} "
                    f"{stats['ai_lines']:>8} {stats['human_lines']:>8}"
                )
        return "\n".join(lines)

    def create_success_envelope(self, payload: Any) -> Dict[str, Any]:
        """Create success envelope around payload."""
        return {"ok": True, "data": payload}

    def create_error_envelope(
        self, error_code: str, error_message: str, details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create error envelope."""
        logger.debug("Creating error envelope", extra={"code": error_code})
        error_data: Dict[str, Any] = {
            "code": error_code,
            "message": error_message,
        }
        if details:
            error_data["details"] = details

        return {"ok": False, "error": error_data}
