#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: Scope-to-SOW Server
# CUI Category: PROPIN
# Distribution: D
# POC: Scope-to-SOW System Administrator
"""SOW Renderer — Build a fixed-section Statement of Work from project fields.

Pure and deterministic: the same input always yields byte-identical sections
and markdown. Input bounds are checked by tools/sow/sow_schema.py before a
document is built; the renderer itself never fails.

Sections (8th only when constraints are given):
    1. Overview                    4. Milestones           7. Risks
    2. Scope                       5. Acceptance Criteria  8. Constraints / Notes
    3. Out of Scope                6. Assumptions & Dependencies

Usage:
    python tools/sow/sow_renderer.py --project-name "Acme Site" --goal "Launch site" \\
        --deliverables "Homepage\\nContact page" [--client "Acme"] \\
        [--timeline-weeks 4] [--constraints "Fixed budget"] [--json]
    python tools/sow/sow_renderer.py --project-name "Acme Site" --goal "Launch site" \\
        --deliverables-file deliverables.txt --output sow.md
"""

import argparse
import json
import re
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from tools.sow.sow_schema import SowValidationError, validate_sow_input  # noqa: E402

TITLE_PREFIX = "Statement of Work (SOW) — "
PLACEHOLDER = "—"

OUT_OF_SCOPE_BODY = (
    "Unless explicitly added in writing, the following are out of scope:\n"
    "- Ongoing maintenance / support beyond handoff\n"
    "- Work not described in the Deliverables section\n"
    "- Additional revision rounds beyond what is agreed"
)

MILESTONES_BODY = (
    "Suggested milestones:\n"
    "- Kickoff & requirements alignment\n"
    "- Draft / first delivery\n"
    "- Review & revisions\n"
    "- Final delivery & handoff"
)

ACCEPTANCE_BODY = (
    "- Deliverables match the written scope and agreed format\n"
    "- Final files/outputs provided and accessible\n"
    "- Review feedback incorporated within the agreed revision policy\n"
    "- Client sign-off provided in writing"
)

ASSUMPTIONS_BODY = (
    "- Client provides required inputs (content, access, brand assets) on time\n"
    "- Single point of contact for approvals\n"
    "- Delays in feedback may shift timeline"
)

RISKS_BODY = (
    "- Scope expansion without change control\n"
    "- Delayed inputs/approvals\n"
    "- Conflicting stakeholder feedback"
)

_TRAILING_WS_BEFORE_NEWLINE = re.compile(r"[ \t\r]*\n")


# ---------------------------------------------------------------------------
# Document types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SowSection:
    """One numbered H2 block of the SOW."""
    heading: str
    body: str


@dataclass(frozen=True)
class EmptySowDocument:
    """Placeholder result returned when the builder widget is first opened."""
    ready: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"ready": self.ready, "title": None, "sections": [], "markdown": ""}


@dataclass(frozen=True)
class SowDocument:
    """A generated Statement of Work."""
    title: str
    sections: Tuple[SowSection, ...]
    markdown: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "sections": [asdict(s) for s in self.sections],
            "markdown": self.markdown,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_lines(value) -> str:
    """Canonicalize free text: LF line breaks, no trailing blanks, trimmed.

    None becomes "". Idempotent.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    text = text.replace("\r\n", "\n")
    text = _TRAILING_WS_BEFORE_NEWLINE.sub("\n", text)
    return text.strip()


def _field(source, name):
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _overview_body(client, project_name, goal):
    lines = []
    if client:
        lines.append(f"Client: {client}")
    lines.append(f"Project: {project_name or PLACEHOLDER}")
    lines.append(f"Goal: {goal or PLACEHOLDER}")
    return "\n".join(lines)


def _scope_body(deliverables):
    if not deliverables:
        return f"Deliverables: {PLACEHOLDER}"
    # Blank lines are dropped; the remaining lines are kept as-is
    items = [line for line in deliverables.split("\n") if line]
    return "Deliverables (what will be produced):\n- " + "\n- ".join(items)


def _milestones_body(timeline_weeks):
    if timeline_weeks is not None:
        first = f"Target timeline: ~{timeline_weeks} week(s)\n"
    else:
        first = "Target timeline: To be agreed\n"
    return first + MILESTONES_BODY


def render_markdown(title: str, sections) -> str:
    """Assemble the H1 title and H2 section blocks into one markdown string."""
    blocks = "\n".join(f"## {s.heading}\n\n{s.body}\n" for s in sections)
    return f"# {title}\n\n{blocks}\n"


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------

def build_sow_doc(sow_input) -> SowDocument:
    """Render a SowDocument from a SowInput or a plain mapping.

    Missing fields are treated as empty. timeline_weeks is used as given;
    callers validate it first.
    """
    project_name = normalize_lines(_field(sow_input, "project_name"))
    client = normalize_lines(_field(sow_input, "client"))
    goal = normalize_lines(_field(sow_input, "goal"))
    deliverables = normalize_lines(_field(sow_input, "deliverables"))
    timeline_weeks = _field(sow_input, "timeline_weeks")
    constraints = normalize_lines(_field(sow_input, "constraints"))

    title = TITLE_PREFIX + (project_name or "Project")

    sections = [
        SowSection("1. Overview", _overview_body(client, project_name, goal)),
        SowSection("2. Scope", _scope_body(deliverables)),
        SowSection("3. Out of Scope", OUT_OF_SCOPE_BODY),
        SowSection("4. Milestones", _milestones_body(timeline_weeks)),
        SowSection("5. Acceptance Criteria", ACCEPTANCE_BODY),
        SowSection("6. Assumptions & Dependencies", ASSUMPTIONS_BODY),
        SowSection("7. Risks", RISKS_BODY),
    ]
    if constraints:
        sections.append(SowSection("8. Constraints / Notes", constraints))

    return SowDocument(
        title=title,
        sections=tuple(sections),
        markdown=render_markdown(title, sections),
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _read_deliverables(args) -> Optional[str]:
    if args.deliverables_file:
        return Path(args.deliverables_file).read_text(encoding="utf-8")
    if args.deliverables is None:
        return None
    # Allow literal "\n" separators from the shell
    return args.deliverables.replace("\\n", "\n")


def main():
    parser = argparse.ArgumentParser(description="SOW Renderer")
    parser.add_argument("--project-name", help="Project name")
    parser.add_argument("--client", help="Client name")
    parser.add_argument("--goal", help="Project goal")
    parser.add_argument("--deliverables",
                        help="Deliverables, newline or \\n separated")
    parser.add_argument("--deliverables-file",
                        help="Text file with one deliverable per line")
    parser.add_argument("--timeline-weeks", type=int, help="Timeline in weeks")
    parser.add_argument("--constraints", help="Constraints / notes")
    parser.add_argument("--output", help="Write markdown to this path")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args()

    raw = {
        "project_name": args.project_name,
        "client": args.client,
        "goal": args.goal,
        "deliverables": _read_deliverables(args),
        "timeline_weeks": args.timeline_weeks,
        "constraints": args.constraints,
    }

    try:
        sow_input = validate_sow_input(raw)
    except SowValidationError as e:
        if args.json:
            print(json.dumps({"status": "error", **e.to_dict()}, indent=2))
        else:
            for err in e.errors:
                print(f"ERROR: {err.field} {err.message}", file=sys.stderr)
        sys.exit(1)

    doc = build_sow_doc(sow_input)

    if args.output:
        Path(args.output).write_text(doc.markdown, encoding="utf-8")

    if args.json:
        print(json.dumps({"status": "success", **doc.to_dict()}, indent=2,
                         ensure_ascii=False))
    elif args.output:
        print(f"Wrote {doc.title} ({len(doc.sections)} sections) to {args.output}")
    else:
        print(doc.markdown, end="")


if __name__ == "__main__":
    main()
