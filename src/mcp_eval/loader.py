"""Parse ``<qa_pair>`` question sets and pull tagged fields out of model text."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from mcp_eval.models import Task

logger = logging.getLogger(__name__)

_QA_PAIR_RE = re.compile(r"<qa_pair>([\s\S]*?)</qa_pair>")
_QUESTION_RE = re.compile(r"<question>([\s\S]*?)</question>")
_ANSWER_RE = re.compile(r"<answer>([\s\S]*?)</answer>")


def parse_tasks(raw: str) -> list[Task]:
    """Parse every complete ``<qa_pair>`` block in *raw*, in source order.

    Blocks missing a ``<question>`` or ``<answer>`` are skipped.
    """
    tasks: list[Task] = []
    skipped = 0

    for match in _QA_PAIR_RE.finditer(raw):
        content = match.group(1)
        question = _QUESTION_RE.search(content)
        answer = _ANSWER_RE.search(content)
        if question and answer:
            tasks.append(Task(
                question=question.group(1).strip(),
                answer=answer.group(1).strip(),
            ))
        else:
            skipped += 1

    if skipped:
        logger.debug("Skipped %d incomplete qa_pair block(s)", skipped)
    return tasks


def load_tasks(path: Union[str, Path]) -> list[Task]:
    """Read a question set from disk."""
    text = Path(path).read_text(encoding="utf-8")
    tasks = parse_tasks(text)
    logger.info("Loaded %d evaluation tasks from %s", len(tasks), path)
    return tasks


def extract_tag(text: str, tag: str) -> Optional[str]:
    """Return the stripped content of the last ``<tag>...</tag>`` in *text*.

    Models sometimes echo the tag template before their real answer, so the
    final occurrence wins.  Returns None when the tag is absent.
    """
    pattern = re.compile(rf"<{re.escape(tag)}>([\s\S]*?)</{re.escape(tag)}>")
    matches = pattern.findall(text or "")
    if not matches:
        return None
    return matches[-1].strip()
