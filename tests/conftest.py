"""Shared fixtures for unit tests."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from esl_grader.models import ClassProfile
from esl_grader.profiles import ProfileStore
from esl_grader.rubric import load_rubric

DATA_DIR = project_root / "data"


@pytest.fixture(scope="session")
def rubric():
    """The rubric shipped with the project."""
    return load_rubric(DATA_DIR / "rubric.json")


@pytest.fixture
def a1_profile():
    return ClassProfile(
        id="a1-test",
        name="A1 Test Class",
        cefr_level="A1",
        vocabulary=("weekend", "homework", "delicious"),
        grammar=("Past Simple",),
    )


@pytest.fixture
def c2_profile():
    return ClassProfile(id="c2-test", name="C2 Test Class", cefr_level="C2")


@pytest.fixture
def profile_store(a1_profile, c2_profile):
    return ProfileStore([a1_profile, c2_profile])
