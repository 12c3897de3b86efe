"""Tests for app config and course catalog loading (F1)."""

import pytest

from precalc.config.app_config import load_app_config
from precalc.config.catalog import (
    CatalogError,
    catalog_position,
    get_course,
    is_paced_course,
    is_valid_course_id,
    list_courses,
    load_catalog,
)


class TestAppConfig:
    """Tests for load_app_config."""

    def test_defaults_when_file_missing(self):
        """Missing config file gives built-in defaults."""
        config = load_app_config()
        assert config.sessions.assignment_timeout_minutes == 120
        assert config.sessions.login_timeout_minutes == 480
        assert config.sessions.mastery_threshold == 0.8
        assert config.site.maintenance_message is None
        assert str(config.db_path) == "db/precalc.db"

    def test_loads_yaml(self, write_config):
        """Values in the YAML file override defaults."""
        write_config(
            "app_config_v1.yaml",
            "site:\n  support_email: help@example.edu\n"
            "sessions:\n  assignment_timeout_minutes: 30\n"
            "paths:\n  state_dir: tmp/state\n",
        )
        config = load_app_config()
        assert config.site.support_email == "help@example.edu"
        assert config.sessions.assignment_timeout_minutes == 30
        assert config.sessions.login_timeout_minutes == 480
        assert str(config.state_dir) == "tmp/state"
        assert str(config.db_path) == "db/precalc.db"

    def test_cached_until_reload(self, write_config):
        """Config is cached; force_reload picks up changes."""
        first = load_app_config()
        write_config("app_config_v1.yaml", "site:\n  maintenance_message: Down\n")
        # write_config clears the cache, so reload explicitly from a fresh cache
        assert load_app_config() is not first
        assert load_app_config().site.maintenance_message == "Down"
        assert load_app_config() is load_app_config()


class TestCourseIds:
    """Tests for course ID validation."""

    @pytest.mark.parametrize("course_id", ["M 117", "M 126", "MATH117", "CS 160"])
    def test_valid(self, course_id):
        assert is_valid_course_id(course_id)

    @pytest.mark.parametrize("course_id", ["", None, "m 117", "M117X", "M  117", "../etc"])
    def test_invalid(self, course_id):
        assert not is_valid_course_id(course_id)


class TestDefaultCatalog:
    """Tests for the built-in five-course catalog."""

    def test_five_courses_in_order(self):
        ids = [c.course_id for c in list_courses()]
        assert ids == ["M 117", "M 118", "M 124", "M 125", "M 126"]

    def test_prerequisites(self):
        assert get_course("M 117").prerequisites == []
        assert get_course("M 118").prerequisites == ["M 117"]
        assert get_course("M 124").prerequisites == ["M 118"]
        assert get_course("M 125").prerequisites == ["M 118"]
        assert get_course("M 126").prerequisites == ["M 125"]

    def test_default_modules(self):
        """Each unit gets a skills review, three targets and an exploration."""
        course = get_course("M 117")
        assert len(course.modules) == 4
        module = course.get_module(2)
        assert module.skills_review == "MATH117SR2"
        assert [t.target_number for t in module.learning_targets] == ["2.1", "2.2", "2.3"]
        assert module.learning_targets[0].assignment_id == "MATH11721"
        assert module.explorations == ["MATH117EX2"]
        assert course.get_module(9) is None

    def test_unknown_course(self):
        assert get_course("M 999") is None
        assert not is_paced_course("M 999")
        assert catalog_position("M 999") == 5

    def test_catalog_position(self):
        assert catalog_position("M 117") == 0
        assert catalog_position("M 126") == 4


class TestCatalogFile:
    """Tests for loading catalog_v1.yaml."""

    def test_loads_courses(self, write_config):
        write_config(
            "catalog_v1.yaml",
            "courses:\n"
            "  'M 101':\n    label: MATH 101\n    name: Intro\n    units: 2\n"
            "  'M 102':\n    label: MATH 102\n    prerequisites: ['M 101']\n    paced: false\n",
        )
        catalog = load_catalog()
        assert list(catalog) == ["M 101", "M 102"]
        assert catalog["M 101"].units == 2
        assert len(catalog["M 101"].modules) == 2
        assert catalog["M 101"].modules[0].skills_review == "MATH101SR1"
        assert catalog["M 102"].prerequisites == ["M 101"]
        assert not is_paced_course("M 102")

    def test_explicit_modules(self, write_config):
        write_config(
            "catalog_v1.yaml",
            "courses:\n"
            "  'M 101':\n"
            "    modules:\n"
            "      - module_number: 1\n"
            "        title: Lines\n"
            "        skills_review: SR-A\n"
            "        learning_targets:\n"
            "          - {target_number: 1.1, assignment_id: LT-A}\n"
            "        explorations: [EX-A, EX-B]\n",
        )
        module = get_course("M 101").get_module(1)
        assert module.title == "Lines"
        assert module.skills_review == "SR-A"
        assert module.learning_targets[0].target_number == "1.1"
        assert module.explorations == ["EX-A", "EX-B"]

    def test_config_dir_setting(self, tmp_path, write_config):
        write_config("app_config_v1.yaml", "paths:\n  config_dir: etc/precalc\n")
        write_config("catalog_v1.yaml", "courses:\n  'M 101':\n    label: MATH 101\n")
        other = tmp_path / "etc" / "precalc"
        other.mkdir(parents=True)
        (other / "catalog_v1.yaml").write_text("courses:\n  'M 201':\n    label: MATH 201\n", encoding="utf-8")

        assert list(load_catalog()) == ["M 201"]

    def test_invalid_course_id(self, write_config):
        write_config("catalog_v1.yaml", "courses:\n  'bad id':\n    label: X\n")
        with pytest.raises(CatalogError, match="Invalid course ID"):
            load_catalog()

    def test_unknown_prerequisite(self, write_config):
        write_config(
            "catalog_v1.yaml",
            "courses:\n  'M 101':\n    prerequisites: ['M 100']\n",
        )
        with pytest.raises(CatalogError, match="unknown prerequisite M 100"):
            load_catalog()
