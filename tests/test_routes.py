# -*- coding: utf-8 -*-
"""
Tests for site route derivation.
"""
from cms_resolver.routes import (
    DEFAULT_ROUTE_TABLE,
    build_route,
    generate_slug,
    is_legacy_path,
    page_path,
    parse_id_slug,
    translate_legacy_path,
)


class TestSlugHelpers:
    """Tests for generate_slug and parse_id_slug."""

    def test_generate_slug(self):
        """Should lowercase, drop punctuation and hyphenate."""
        assert generate_slug("Type 1 Diabetes: An Overview!") == "type-1-diabetes-an-overview"
        assert generate_slug("  snake_case  words ") == "snake-case-words"
        assert generate_slug(None) == ""

    def test_parse_id_slug(self):
        """Should split a trailing numeric id from the slug."""
        assert parse_id_slug("asthma-123") == ("asthma", "123")
        assert parse_id_slug("type-1-diabetes") == ("type-1-diabetes", None)
        assert parse_id_slug("asthma") == ("asthma", None)
        assert parse_id_slug("") == ("", None)

    def test_parse_id_slug_number_only(self):
        """A bare number is a slug, not an id suffix."""
        assert parse_id_slug("2024") == ("2024", None)


class TestRouteTable:
    """Tests for RouteTable."""

    def test_condition_page(self):
        """Condition pages should route under /conditions."""
        assert DEFAULT_ROUTE_TABLE.route("conditions.ConditionPage", "asthma") == "/conditions/asthma"

    def test_app_label_wins(self):
        """The app label should decide before the model name."""
        assert DEFAULT_ROUTE_TABLE.prefix_for("news.NewsArticlePage") == "/news"

    def test_full_type_fallback(self):
        """The full type should be tried when the app label matches nothing."""
        assert DEFAULT_ROUTE_TABLE.prefix_for("content.DrugPage") == "/drugs"

    def test_yoga_and_exercise(self):
        """Yoga and exercise pages share one section."""
        assert DEFAULT_ROUTE_TABLE.prefix_for("yoga.YogaTopicPage") == "/yoga-exercise"
        assert DEFAULT_ROUTE_TABLE.prefix_for("fitness.ExercisePage") == "/yoga-exercise"

    def test_unknown_type(self):
        """Unknown types should route to /{slug}."""
        assert DEFAULT_ROUTE_TABLE.route("home.HomePage", "about") == "/about"
        assert DEFAULT_ROUTE_TABLE.route(None, "/about/") == "/about"


class TestLegacyPaths:
    """Tests for legacy CMS path translation."""

    def test_section_prefix(self):
        """Should map a legacy section to its category."""
        assert translate_legacy_path("/home/all-news-pages/flu-season/") == "/news/flu-season"

    def test_nested_path_keeps_last_segment(self):
        """Should keep only the category and the last segment."""
        assert translate_legacy_path("all-conditions-a-z/conditions/condition/adhd") == "/conditions/adhd"

    def test_duplicate_category(self):
        """Should collapse duplicated categories."""
        assert translate_legacy_path("articles/articles/warm-up") == "/articles/warm-up"

    def test_overlapping_prefixes(self):
        """Longer section names should not be shadowed by shorter ones."""
        assert translate_legacy_path("/all-drugs-a-z-pages/aspirin") == "/drugs/aspirin"
        assert translate_legacy_path("/all-drugs/aspirin") == "/drugs/aspirin"

    def test_unknown_section(self):
        """Should return None outside known categories."""
        assert translate_legacy_path("/about-us/team") is None
        assert translate_legacy_path("/all-news-pages/") is None
        assert translate_legacy_path("") is None

    def test_is_legacy_path(self):
        """Should recognize legacy sections and duplicated categories."""
        assert is_legacy_path("/all-yoga-pages/sun-salutation") is True
        assert is_legacy_path("/home/all-wellness/sleep") is True
        assert is_legacy_path("/articles/articles/x") is True
        assert is_legacy_path("/articles/x") is False
        assert is_legacy_path("https://example.com/all-news") is False


class TestBuildRoute:
    """Tests for build_route."""

    def test_slug_and_type(self):
        """Should combine the type prefix with the slug."""
        page = {"meta": {"type": "conditions.ConditionPage", "slug": "type-1-diabetes"}}
        assert build_route(page) == ("type-1-diabetes", "/conditions/type-1-diabetes")

    def test_url_path_without_slug(self):
        """Should fall back to the legacy URL path."""
        page = {"meta": {"type": "wellness.WellnessPage", "url_path": "/home/all-wellness-pages/sleep/"}}
        assert build_route(page) == ("sleep", "/wellness/sleep")

    def test_html_url_without_slug(self):
        """Should read the path from an absolute html_url."""
        page = {
            "meta": {
                "type": "drugs.DrugPage",
                "html_url": "http://127.0.0.1:8001/all-drugs-a-z/metformin/",
            }
        }
        assert build_route(page) == ("metformin", "/drugs/metformin")

    def test_title_fallback(self):
        """Should slugify the title when nothing else is available."""
        page = {"title": "Healthy Sleep Habits", "meta": {"type": "wellness.WellnessPage"}}
        assert build_route(page) == ("healthy-sleep-habits", "/wellness/healthy-sleep-habits")

    def test_nothing_to_route(self):
        """Should return None without slug, path or title."""
        assert build_route({"meta": {}}) is None

    def test_non_object_meta(self):
        """Should ignore a non-object meta and fall back to the title."""
        assert build_route({"meta": "oops", "title": "X"}) == ("x", "/x")

    def test_non_string_fields_treated_as_missing(self):
        """Numeric slug, type and title should count as absent."""
        assert build_route({"meta": {"type": 3, "slug": 12}, "title": 5}) is None
        page = {"meta": {"type": "conditions.ConditionPage", "slug": 12}, "title": "Asthma"}
        assert build_route(page) == ("asthma", "/conditions/asthma")

    def test_malformed_html_url(self):
        """An unparseable html_url should be skipped."""
        page = {"meta": {"type": "drugs.DrugPage", "html_url": "http://[bad/all-drugs-a-z/x/"}}
        assert page_path(page) is None
        assert build_route(page) is None
