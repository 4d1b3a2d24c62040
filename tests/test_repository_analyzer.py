"""Tests for metadata-only repository analysis."""
from repointel.application.repository_analyzer import (
    GENERIC_STRUCTURE,
    STRUCTURES,
    analyze_repository,
    detect_framework,
    dominant_framework,
    extract_components,
    identify_features,
    infer_dependencies,
)
from repointel.domain.models import Framework
from conftest import make_repo


def test_framework_priority_order():
    """Test that Next.js wins over React when both are mentioned."""
    repo = make_repo(description="A Next.js starter built on React", topics=("react",))

    assert detect_framework(repo) == Framework.NEXTJS


def test_framework_from_name():
    """Test detection from the repository name alone."""
    assert detect_framework(make_repo(name="vue-admin")) == Framework.VUE


def test_unknown_framework():
    """Test that unmatched repositories are unknown."""
    assert detect_framework(make_repo(name="dotfiles", description="My shell config")) == Framework.UNKNOWN


def test_components_from_topics_and_description():
    """Test component extraction from exact topics and description substrings."""
    repo = make_repo(description="Admin dashboard with charts", topics=("stripe",))

    components = extract_components(repo)

    assert "dashboard" in components
    assert "admin" in components
    assert "charts" in components
    assert "stripe" in components
    assert "chat" not in components


def test_dependencies_are_deduplicated():
    """Test framework and topic dependencies without duplicates."""
    repo = make_repo(topics=("typescript", "TailwindCSS", "typescript"))

    deps = infer_dependencies(repo, Framework.NEXTJS)

    assert deps == ("next", "react", "react-dom", "typescript", "tailwindcss")


def test_features_from_keywords():
    """Test feature identification."""
    repo = make_repo(description="SaaS starter with OAuth login and Stripe checkout")

    features = identify_features(repo)

    assert "User Authentication" in features
    assert "Payment Processing" in features
    assert "Email System" not in features


def test_analysis_uses_framework_structure():
    """Test that the analysis carries the framework template."""
    analysis = analyze_repository(make_repo(name="remix-blog", quality_score=72))

    assert analysis.framework == Framework.REMIX
    assert analysis.structure == STRUCTURES[Framework.REMIX]
    assert analysis.quality_score == 72


def test_unknown_framework_gets_generic_structure():
    """Test the fallback project layout."""
    analysis = analyze_repository(make_repo(name="dotfiles"))

    assert analysis.structure == GENERIC_STRUCTURE
    assert analysis.dependencies == ()


def test_dominant_framework():
    """Test majority vote with first-seen tie breaking and the empty default."""
    assert dominant_framework([Framework.VUE, Framework.REACT, Framework.REACT]) == Framework.REACT
    assert dominant_framework([Framework.VUE, Framework.REACT]) == Framework.VUE
    assert dominant_framework([]) == Framework.REACT
