"""Tests for microblog post-text heuristics, one behaviour per pattern."""

import pytest

from linkstash.extraction.social_text import (
    candidate_lines,
    extract_post_text,
    is_candidate_line,
    post_text_from_title,
    strip_markup,
    strip_ui_noise,
    truncate_title,
)


class TestPostTextFromTitle:
    def test_straight_quotes(self) -> None:
        title = 'Jane Doe on X: "Shipping the new release today" / X'
        assert post_text_from_title(title) == "Shipping the new release today"

    def test_curly_quotes_without_suffix(self) -> None:
        title = "Jane Doe on X: “Hello world”"
        assert post_text_from_title(title) == "Hello world"

    def test_non_matching_title(self) -> None:
        assert post_text_from_title("Some page title") == ""
        assert post_text_from_title("") == ""


class TestStripMarkup:
    def test_images_removed(self) -> None:
        assert strip_markup("before ![alt](https://img/x.png) after") == "before  after"

    def test_link_text_kept(self) -> None:
        assert strip_markup("see [the docs](https://d.example)") == "see the docs"

    def test_bare_urls_removed(self) -> None:
        assert strip_markup("go https://t.co/abc now") == "go  now"


class TestUiNoise:
    @pytest.mark.parametrize(
        "noise",
        [
            "Title: Jane on X",
            "URL Source: https://x.com/jane/status/1",
            "Markdown Content:",
            "Published Time: 2024-01-01",
            "Translate post",
            "Show more",
            "10:42 AM",
            "1.2K views",
            "34 replies",
            "5 reposts",
            "Post your reply",
            "What is happening?!",
        ],
    )
    def test_pattern_removed(self, noise: str) -> None:
        assert strip_ui_noise(noise).strip() == ""

    @pytest.mark.parametrize("line", ["Quote", "Reply", "Repost", "Like", "Share", "X", "@jane"])
    def test_whole_line_labels_removed(self, line: str) -> None:
        assert strip_ui_noise(f"keep\n{line}\nkeep").split("\n") == ["keep", "", "keep"]

    def test_label_inside_sentence_survives(self) -> None:
        assert strip_ui_noise("I Like this a lot") == "I Like this a lot"


class TestCandidateLines:
    @pytest.mark.parametrize("line", ["ab", "@someone", "12345", "Home", "explore", "Settings"])
    def test_rejected(self, line: str) -> None:
        assert not is_candidate_line(line)

    def test_accepted(self) -> None:
        assert is_candidate_line("An actual sentence")

    def test_candidate_lines_cleans_and_filters(self) -> None:
        content = "Home\n![img](https://i/x.png)\nThe post itself\n42\n"
        assert candidate_lines(content) == ["The post itself"]


class TestExtractPostText:
    def test_longest_line_wins(self) -> None:
        content = "\n".join(
            [
                "Title: Jane on X",
                "Home",
                "Explore",
                "Jane",
                "@jane",
                "This is the post the author actually wrote, in full.",
                "10:42 AM",
                "Short one here",
            ]
        )
        assert extract_post_text(content) == "This is the post the author actually wrote, in full."

    def test_overlong_lines_skipped(self) -> None:
        content = "x" * 600 + "\nA reasonable post line"
        assert extract_post_text(content) == "A reasonable post line"

    def test_short_lines_joined(self) -> None:
        assert extract_post_text("gm\nhey\nyo!") == "hey yo!"

    def test_empty(self) -> None:
        assert extract_post_text("") == ""


class TestTruncateTitle:
    def test_short_text_kept(self) -> None:
        assert truncate_title("Hello world") == "Hello world"

    def test_long_text_truncated(self) -> None:
        title = truncate_title("word " * 30)
        assert len(title) <= 50
        assert title.endswith("...")

    def test_whitespace_collapsed(self) -> None:
        assert truncate_title("a\n\n  b") == "a b"
