"""Tests for compatibility analysis."""
import pytest

from repointel.application.compatibility_service import (
    NEED_MORE_DATA,
    CompatibilityService,
    compatibility_score,
    framework_score,
)
from repointel.application.repository_analyzer import analyze_repository
from repointel.domain.exceptions import InsufficientInput
from repointel.domain.models import ConflictType, Framework, Severity
from conftest import make_repo


def test_empty_and_single_inputs_are_neutral():
    """Test that fewer than two repositories yield score 100 and no conflicts."""
    service = CompatibilityService()

    for repos in ([], [make_repo(name="react-app")]):
        report = service.analyze(repos)
        assert report.score == 100
        assert report.conflicts == []
        assert report.suggestions == [NEED_MORE_DATA]
        assert not report.sufficient_input


def test_score_requires_two_analyses():
    """Test the explicit error of the scoring function."""
    with pytest.raises(InsufficientInput):
        compatibility_score([analyze_repository(make_repo())])


def test_identical_repositories_are_fully_compatible():
    """Test that two identical repositories score 100."""
    repo = make_repo(name="next-shop", description="Next.js storefront")
    twin = make_repo(2, name="next-shop", description="Next.js storefront")

    report = CompatibilityService().analyze([repo, twin])

    assert report.score == 100
    assert report.conflicts == []
    assert "Projects appear to be compatible" in report.suggestions
    assert report.frameworks == [Framework.NEXTJS, Framework.NEXTJS]


def test_disjoint_stacks_score_lower():
    """Test that a Next.js and a Django project conflict."""
    frontend = make_repo(1, name="nextjs-shop")
    backend = make_repo(2, name="django-api")

    report = CompatibilityService().analyze([frontend, backend])

    assert report.score < 100
    types = {conflict.type for conflict in report.conflicts}
    assert ConflictType.FRAMEWORK in types
    assert ConflictType.DEPENDENCY in types
    assert ConflictType.ARCHITECTURE in types
    assert any("separate packages" in s for s in report.suggestions)


def test_same_family_penalized_less():
    """Test that React-family frameworks are closer than cross-family ones."""
    same_family = framework_score([Framework.NEXTJS, Framework.REACT])
    cross_family = framework_score([Framework.NEXTJS, Framework.VUE])

    assert 0 < cross_family < same_family < 100


def test_incompatible_dependencies_reported():
    """Test known-incompatible dependency pairs."""
    react = make_repo(1, name="react-widgets")
    vue = make_repo(2, name="vue-widgets")

    report = CompatibilityService().analyze([react, vue])

    dependency_conflicts = [c for c in report.conflicts if c.type == ConflictType.DEPENDENCY]
    assert len(dependency_conflicts) == 1
    assert dependency_conflicts[0].severity == Severity.HIGH
    assert "Keep only one of react and vue" in report.suggestions


def test_license_mismatch_is_low_severity():
    """Test the license placeholder conflict."""
    first = make_repo(1, name="react-a", license="MIT License")
    second = make_repo(2, name="react-b", license="Apache License 2.0")

    report = CompatibilityService().analyze([first, second])

    licenses = [c for c in report.conflicts if c.type == ConflictType.LICENSE]
    assert len(licenses) == 1
    assert licenses[0].severity == Severity.LOW
