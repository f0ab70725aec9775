"""
Free-text implementation plans split into todo fields.

Each top-level numbered or bulleted line starts a todo; the lines under
it (including indented sub-items) become its description and the first
fenced code block becomes its code example. A trailing
"(complexity: N)" on the item line sets the complexity. Text without
any list items becomes a single todo.
"""

import re
from typing import Optional

from .models import MAX_COMPLEXITY, TodoFields

DEFAULT_COMPLEXITY = 5

ITEM_PATTERN = re.compile(r"^(?:\d+[.)]|[-*+])\s+(?:\[[ xX]\]\s+)?(?P<text>.+?)\s*$")
COMPLEXITY_PATTERN = re.compile(
	r"\s*\(\s*complexity\s*[:=]?\s*(?P<value>\d+)\s*(?:/\s*10\s*)?\)\s*$",
	re.IGNORECASE,
)
FENCE = "```"


def _split_title(text: str) -> tuple[str, int]:
	complexity = DEFAULT_COMPLEXITY
	match = COMPLEXITY_PATTERN.search(text)
	if match:
		complexity = min(int(match.group("value")), MAX_COMPLEXITY)
		text = text[:match.start()]
	return text.replace("**", "").strip(), complexity


class _Draft:
	def __init__(self, title: str, complexity: int):
		self.title = title
		self.complexity = complexity
		self.lines: list[str] = []
		self.code: Optional[list[str]] = None

	def build(self) -> TodoFields:
		description = "\n".join(self.lines).strip()
		return TodoFields(
			title=self.title,
			description=description or self.title,
			complexity=self.complexity,
			code_example="\n".join(self.code) if self.code else None,
		)


def parse_plan_text(text: str) -> list[TodoFields]:
	"""Split plan text into todo fields, in order of appearance."""
	drafts: list[_Draft] = []
	preamble: list[str] = []
	in_code = False
	code_target: Optional[list[str]] = None

	for line in text.splitlines():
		if line.strip().startswith(FENCE):
			in_code = not in_code
			code_target = None
			if in_code and drafts and drafts[-1].code is None:
				drafts[-1].code = []
				code_target = drafts[-1].code
			continue

		if in_code:
			if code_target is not None:
				code_target.append(line)
			continue

		match = ITEM_PATTERN.match(line)
		if match:
			title, complexity = _split_title(match.group("text"))
			if title:
				drafts.append(_Draft(title, complexity))
				continue

		if line.lstrip().startswith("#"):
			continue
		if drafts:
			drafts[-1].lines.append(line.strip())
		else:
			preamble.append(line.strip())

	if drafts:
		return [draft.build() for draft in drafts]

	lines = [line for line in preamble if line]
	if not lines:
		return []
	title, complexity = _split_title(lines[0])
	single = _Draft(title, complexity)
	single.lines = lines[1:]
	return [single.build()]
