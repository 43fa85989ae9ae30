"""Tests for ContentUnitValidator."""

import pytest

from content_generator.infra.config import PipelineConfig
from content_generator.usecase.validate_unit import ContentUnitValidator
from tests.fakes.documents import make_document, make_post, make_tag


class TestContentUnitValidator:
    def test_valid_document(self, validator, sample_document):
        result = validator.validate(sample_document)

        assert result.is_valid
        assert result.violations == []
        assert result.unit.category == "chatgpt-prompts"

    def test_script_in_content_is_rejected_not_sanitized(self, validator):
        document = make_document(posts=[make_post("xss", content="<script>alert(1)</script>")])

        result = validator.validate(document)

        assert not result.is_valid
        assert result.unit is None
        assert result.suspicious
        assert any(v.startswith("posts.0.content:") for v in result.violations)

    def test_benign_html_is_sanitized_to_plain_text(self, validator):
        document = make_document(
            posts=[make_post("html", content="<p>Use <em>short</em> sentences.</p>", description="<b>Tips</b>")]
        )

        result = validator.validate(document)

        assert result.is_valid
        post = result.unit.posts[0]
        assert post.content == "Use short sentences."
        assert post.description == "Tips"

    def test_field_empty_after_sanitization_is_a_violation(self, validator):
        document = make_document(posts=[make_post("empty", content="<style>p{}</style>")])

        result = validator.validate(document)

        assert not result.is_valid
        assert result.violations == ["posts.0.content: empty after sanitization"]
        assert not result.suspicious

    def test_duplicate_post_slugs_invalidate_the_unit(self, validator):
        result = validator.validate(make_document(posts=[make_post("dup"), make_post("dup")]))

        assert not result.is_valid
        assert "Duplicate post slugs detected: dup" in result.violations[0]

    def test_configured_limits(self):
        config = PipelineConfig(max_tags_per_unit=2, max_posts_per_unit=1, max_content_length=10)
        validator = ContentUnitValidator(config)
        document = make_document(
            tags=[make_tag("a"), make_tag("b"), make_tag("c")],
            posts=[make_post("one", content="x" * 11), make_post("two")],
        )

        result = validator.validate(document)

        assert not result.is_valid
        assert result.violations == [
            "tags: Too many tags (max 2)",
            "posts: Too many posts (max 1)",
            "posts.0.content: Content exceeds 10 character limit",
        ]

    def test_content_exactly_at_limit_is_accepted(self):
        validator = ContentUnitValidator(PipelineConfig(max_content_length=10))

        result = validator.validate(make_document(posts=[make_post("edge", content="x" * 10)]))

        assert result.is_valid

    @pytest.mark.parametrize("raw", [None, [], "text", 42])
    def test_non_object_input_is_a_validation_failure(self, validator, raw):
        result = validator.validate(raw)

        assert not result.is_valid
        assert result.violations

    def test_missing_fields_are_reported_by_location(self, validator):
        document = make_document()
        del document["posts"][0]["title"]

        result = validator.validate(document)

        assert result.violations == ["posts.0.title: Field required"]
