"""Tests for mcp_eval.loader: question-set parsing and tag extraction."""

from mcp_eval.loader import extract_tag, load_tasks, parse_tasks
from mcp_eval.models import Task

SAMPLE = """\
<evaluation>
  <qa_pair>
    <question>How many open issues are labelled bug?</question>
    <answer>12</answer>
  </qa_pair>
  <qa_pair>
    <question>
      Which user created the repository?
    </question>
    <answer>  octocat  </answer>
  </qa_pair>
</evaluation>
"""


class TestParseTasks:
    def test_parses_all_pairs_in_order(self):
        tasks = parse_tasks(SAMPLE)
        assert tasks == [
            Task(question="How many open issues are labelled bug?", answer="12"),
            Task(question="Which user created the repository?", answer="octocat"),
        ]

    def test_empty_input(self):
        assert parse_tasks("") == []

    def test_no_pairs(self):
        assert parse_tasks("<question>q</question><answer>a</answer>") == []

    def test_missing_answer_skipped(self):
        raw = (
            "<qa_pair><question>q1</question><answer>a1</answer></qa_pair>"
            "<qa_pair><question>q2</question></qa_pair>"
        )
        assert parse_tasks(raw) == [Task(question="q1", answer="a1")]

    def test_missing_question_skipped(self):
        raw = (
            "<qa_pair><answer>orphan</answer></qa_pair>"
            "<qa_pair><question>q</question><answer>a</answer></qa_pair>"
        )
        assert parse_tasks(raw) == [Task(question="q", answer="a")]

    def test_multiline_content_preserved(self):
        raw = "<qa_pair><question>line one\nline two</question><answer>x</answer></qa_pair>"
        assert parse_tasks(raw)[0].question == "line one\nline two"

    def test_unclosed_block_ignored(self):
        raw = "<qa_pair><question>q</question><answer>a</answer>"
        assert parse_tasks(raw) == []


class TestLoadTasks:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "evaluation.xml"
        path.write_text(SAMPLE, encoding="utf-8")
        tasks = load_tasks(path)
        assert len(tasks) == 2
        assert tasks[1].answer == "octocat"


class TestExtractTag:
    def test_single_occurrence(self):
        assert extract_tag("<response>4</response>", "response") == "4"

    def test_last_occurrence_wins(self):
        text = "Template: <response>answer here</response>\n...\n<response>42</response>"
        assert extract_tag(text, "response") == "42"

    def test_missing_tag(self):
        assert extract_tag("no tags here", "response") is None

    def test_empty_text(self):
        assert extract_tag("", "summary") is None

    def test_strips_whitespace_and_spans_lines(self):
        text = "<summary>\n  Used list_issues.\n  Counted bugs.\n</summary>"
        assert extract_tag(text, "summary") == "Used list_issues.\n  Counted bugs."

    def test_other_tags_ignored(self):
        text = "<feedback>good</feedback><response>yes</response>"
        assert extract_tag(text, "feedback") == "good"
        assert extract_tag(text, "response") == "yes"
