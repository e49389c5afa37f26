"""Best-effort recovery of JSON records from raw model output.

Completions are untrusted text: they may wrap the payload in prose or code
fences, break lines inside strings, leave trailing commas, or stop mid-object
when the token budget runs out. The scanner here walks the text tracking
bracket depth and JSON string/escape state, hands back one balanced fragment
at a time, and a fragment that fails to parse is dropped on its own without
losing the rest of the batch.
"""
from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

_NOISE_RE = re.compile(r"[\s\x00-\x1f\x7f]+")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_QUESTION_KEYS_RE = re.compile(r'"question"\s*:.*"options"\s*:.*"answer"\s*:')


def normalize(raw: Optional[str]) -> str:
	"""Collapse whitespace and control-character runs to single spaces and trim."""
	return _NOISE_RE.sub(" ", raw or "").strip()


def repair_trailing_commas(fragment: str) -> str:
	return _TRAILING_COMMA_RE.sub(r"\1", fragment)


def _scan(
	text: str,
	pos: int,
	opener: str,
	closer: str,
	dead: Set[Tuple[int, bool, bool]],
) -> Optional[Tuple[int, Optional[int]]]:
	"""Find the first innermost balanced ``opener ... closer`` span at or after ``pos``.

	Returns ``(start, end)`` for a closed span, ``(start, None)`` when the span
	opened at ``start`` is still unclosed when the text ends, or ``None`` when
	no opener remains. String state is only tracked inside a span, so stray
	quotes in surrounding prose cannot desynchronise the scan.

	Once a span is open, the outcome depends only on the position and the
	string/escape state. ``dead`` collects the states of failed scans, and a
	later scan that reaches one of them fails without reading further.
	"""
	start = text.find(opener, pos)
	if start < 0:
		return None
	stack: List[int] = [start]
	in_string = False
	escaped = False
	visited: List[Tuple[int, bool, bool]] = []
	for i in range(start + 1, len(text)):
		state = (i, in_string, escaped)
		if state in dead:
			break
		visited.append(state)
		ch = text[i]
		if in_string:
			if escaped:
				escaped = False
			elif ch == "\\":
				escaped = True
			elif ch == '"':
				in_string = False
			continue
		if ch == '"':
			in_string = True
		elif ch == opener:
			stack.append(i)
		elif ch == closer:
			# the first closer always ends the most recently opened, innermost span
			return stack.pop(), i + 1
	dead.update(visited)
	return start, None


def _iter_spans(text: str, opener: str, closer: str) -> Iterator[Tuple[int, int]]:
	dead: Set[Tuple[int, bool, bool]] = set()
	pos = 0
	while pos < len(text):
		found = _scan(text, pos, opener, closer, dead)
		if found is None:
			return
		start, end = found
		# an unclosed span is truncated or unbalanced; either way resume just past its opener
		if end is not None:
			yield start, end
		pos = start + 1


def _loads(fragment: str) -> Any:
	try:
		return json.loads(repair_trailing_commas(fragment))
	except (ValueError, RecursionError):
		return None


def iter_question_objects(raw: Optional[str]) -> Iterator[Dict[str, Any]]:
	"""Lazily yield the question-shaped objects found in ``raw``, in source order.

	A candidate is an innermost ``{...}`` fragment mentioning the keys
	``"question"``, ``"options"`` and ``"answer"`` in that order. Candidates
	that still fail to parse after trailing-comma repair are skipped.
	"""
	text = normalize(raw)
	consumed_to = 0
	for start, end in _iter_spans(text, "{", "}"):
		if start < consumed_to:
			continue
		fragment = text[start:end]
		if not _QUESTION_KEYS_RE.search(fragment):
			continue
		obj = _loads(fragment)
		if not isinstance(obj, dict):
			logger.debug("Discarding malformed question candidate at offset %d", start)
			continue
		consumed_to = end
		yield obj


def extract_string_list(raw: Optional[str]) -> List[str]:
	"""Return the non-empty strings of the first parseable JSON array in ``raw``."""
	text = normalize(raw)
	if not text:
		return []
	for start, end in _iter_spans(text, "[", "]"):
		data = _loads(text[start:end])
		if not isinstance(data, list):
			continue
		items = [item.strip() for item in data if isinstance(item, str) and item.strip()]
		if items:
			return items
	return []
