"""Tests for StoryParser and story document lookup."""

from __future__ import annotations

import pytest

from lessonprobe.core.parsers import StoryParser, find_story_document


@pytest.fixture
def parser() -> StoryParser:
    return StoryParser()


def test_parse_title_and_description(parser: StoryParser, story_xml: str):
    model = parser.parse(story_xml)

    assert model.title == "Sorting Game"
    assert model.description == "Sort the animals"


def test_parse_slides(parser: StoryParser, story_xml: str):
    slides = parser.parse(story_xml).slides

    assert [s.id for s in slides] == ["s1", "s2", "s3"]
    assert [s.title for s in slides] == ["Intro", "Sort mammals", "Sort birds"]
    assert slides[0].text == "Welcome to the sorting game"
    assert slides[0].media == ["image"]
    assert slides[0].interactions == []
    assert [i.type for i in slides[1].interactions] == ["dragdrop", "match"]
    assert slides[2].text == ""


def test_parse_interactions(parser: StoryParser, story_xml: str):
    interactions = parser.parse(story_xml).interactions

    # Tag-typed interactions first, then explicit <interaction type=...>
    assert [(i.id, i.type) for i in interactions] == [
        ("t1", "trigger"),
        ("i1", "dragdrop"),
        ("i2", "match"),
        ("i3", "drag-target"),
    ]


def test_parse_questions(parser: StoryParser):
    model = parser.parse(
        """
        <story>
          <slide id="q1">
            <question id="q1a" type="truefalse">Is the sky blue?</question>
            <question id="q1b" prompt="Pick two"/>
          </slide>
        </story>
        """
    )

    assert [(q.id, q.type, q.prompt) for q in model.quizzes] == [
        ("q1a", "truefalse", "Is the sky blue?"),
        ("q1b", "multiplechoice", "Pick two"),
    ]
    assert model.slides[0].title == "Slide 1"


def test_parse_malformed_raises(parser: StoryParser):
    with pytest.raises(ValueError, match="Malformed XML"):
        parser.parse("<story><slide></story>")


class TestFindStoryDocument:
    """Tests for candidate document lookup."""

    def test_candidates_checked_in_order(self):
        paths = ["course.xml", "story_content/model.xml", "index.html"]

        assert find_story_document(paths) == "story_content/model.xml"

    def test_nested_and_backslash_paths(self):
        assert find_story_document(["pkg\\story.xml"]) == "pkg\\story.xml"

    def test_no_candidate(self):
        assert find_story_document(["index.html", "story.js"]) is None
