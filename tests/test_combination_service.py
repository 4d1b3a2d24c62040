"""Tests for project combination."""
import json
from repointel.application.combination_service import CombinationService
from repointel.application.repository_analyzer import STRUCTURES
from repointel.domain.models import (
    CombinationRequest,
    ComponentMerging,
    ConflictResolution,
    DependencyStrategy,
    Framework,
)
from repointel.infrastructure.memory_combination_storage import InMemoryCombinationStorage
from conftest import make_repo


FIXED_EPOCH = 1718452800.0


def _service(**policies) -> CombinationService:
    return CombinationService(InMemoryCombinationStorage(), clock=lambda: FIXED_EPOCH, **policies)


def _nextjs_pair():
    return [
        make_repo(11, "nextjs-blog", topics=("typescript",), description="Next.js blog with auth"),
        make_repo(7, "nextjs-shop", topics=("typescript", "stripe"), description="Next.js shop with payment"),
    ]


def test_two_nextjs_repositories():
    """Test the target framework and deduplicated dependencies."""
    result = _service().combine(CombinationRequest(_nextjs_pair(), "My App"))

    assert result.strategy.target_framework == Framework.NEXTJS
    assert result.dependencies[:3] == ["next", "react", "react-dom"]
    assert len(result.dependencies) == len(set(result.dependencies))
    assert "stripe" in result.dependencies
    assert result.structure == STRUCTURES[Framework.NEXTJS]
    assert result.scripts["dev"] == "next dev"
    assert result.scripts["lint"] == "eslint . --ext .ts,.tsx"
    assert result.deployment_config.output_directory == ".next"


def test_combination_id_and_idempotence():
    """Test that the same request at the same instant stores one result."""
    service = _service()
    request = CombinationRequest(_nextjs_pair(), "My App")

    first = service.combine(request)
    second = service.combine(request)

    assert first.id == second.id == "combo-1718452800000-7-11"
    assert service.list_all() == [second]
    assert service.get(first.id) == second
    assert service.get("combo-missing") is None


def test_explicit_target_framework_wins():
    """Test that a requested framework overrides the majority vote."""
    request = CombinationRequest(_nextjs_pair(), "My App", target_framework=Framework.REMIX)

    result = _service().combine(request)

    assert result.strategy.target_framework == Framework.REMIX
    assert result.structure == STRUCTURES[Framework.REMIX]
    assert result.deployment_config.output_directory == "build"


def test_merge_policy_unions_structures():
    """Test that the merge policy unions every layout."""
    repos = [make_repo(1, "nextjs-site"), make_repo(2, "vue-admin")]

    result = _service(conflict_resolution=ConflictResolution.MERGE).combine(
        CombinationRequest(repos, "Union")
    )

    for folder in STRUCTURES[Framework.NEXTJS].folders + STRUCTURES[Framework.VUE].folders:
        assert folder in result.structure.folders
    assert len(result.structure.folders) == len(set(result.structure.folders))


def test_overwrite_policy_keeps_first_layout():
    """Test that the overwrite policy keeps the first repository's layout."""
    repos = [make_repo(1, "vue-admin"), make_repo(2, "nextjs-site"), make_repo(3, "nextjs-blog")]

    result = _service(conflict_resolution=ConflictResolution.OVERWRITE).combine(
        CombinationRequest(repos, "First")
    )

    assert result.strategy.target_framework == Framework.NEXTJS
    assert result.structure == STRUCTURES[Framework.VUE]


def test_generated_manifest_and_files():
    """Test the package manifest, env template and README."""
    result = _service().combine(CombinationRequest(_nextjs_pair(), "My App", features=("Dark mode",)))
    files = {f.path: f for f in result.files}

    manifest = json.loads(files["package.json"].content)
    assert manifest["name"] == "my-app"
    assert list(manifest["dependencies"]) == result.dependencies
    assert files[".env.example"].content == "GITHUB_TOKEN=\nDATABASE_URL=\n"
    assert files["README.md"].content.startswith("# My App\n")
    assert "app/page.tsx" in files
    assert "- Dark mode" in result.instructions
    assert any("octocat/nextjs-blog" in line for line in result.instructions)


def test_selective_components_take_first_repository():
    """Test that one stub per component is generated."""
    repos = [
        make_repo(1, "nextjs-a", description="auth dashboard", quality_score=40),
        make_repo(2, "nextjs-b", description="auth dashboard", quality_score=90),
    ]

    selective = _service().combine(CombinationRequest(repos, "S"))
    best = _service(component_merging=ComponentMerging.BEST_OF_BREED).combine(CombinationRequest(repos, "B"))
    everything = _service(component_merging=ComponentMerging.ALL).combine(CombinationRequest(repos, "A"))

    auth_selective = [f for f in selective.files if f.path == "components/auth/index.tsx"]
    auth_best = [f for f in best.files if f.path == "components/auth/index.tsx"]
    auth_all = [f for f in everything.files if f.path.startswith("components/auth-")]
    assert [f.source for f in auth_selective] == ["octocat/nextjs-a"]
    assert [f.source for f in auth_best] == ["octocat/nextjs-b"]
    assert len(auth_all) == 2


def test_separate_dependency_strategy_writes_package_manifests():
    """Test per-repository manifests for non-unified dependency layouts."""
    repos = [make_repo(1, "nextjs-site"), make_repo(2, "fastapi-backend")]

    result = _service(dependency_strategy=DependencyStrategy.SEPARATE).combine(
        CombinationRequest(repos, "Mono", target_framework=Framework.NEXTJS)
    )
    paths = {f.path for f in result.files}

    assert "packages/nextjs-site/package.json" in paths
    assert "packages/fastapi-backend/requirements.txt" in paths


def test_python_target_uses_requirements():
    """Test that Python targets get a requirements manifest and Python scripts."""
    repos = [make_repo(1, "fastapi-users"), make_repo(2, "fastapi-admin")]

    result = _service().combine(CombinationRequest(repos, "Api"))
    files = {f.path: f for f in result.files}

    assert result.strategy.target_framework == Framework.FASTAPI
    assert files["requirements.txt"].content == "fastapi\nuvicorn\n"
    assert result.scripts["dev"] == "uvicorn app.main:app --reload"
    assert "lint" not in result.scripts


def test_python_target_gets_python_commands():
    """Test that setup and deployment commands follow a Python target."""
    repos = [make_repo(1, "fastapi-users"), make_repo(2, "fastapi-admin")]

    result = _service().combine(CombinationRequest(repos, "Api"))
    readme = next(f for f in result.files if f.path == "README.md")

    assert result.deployment_config.build_command == "pip install -r requirements.txt"
    assert result.deployment_config.output_directory == "."
    assert "2. Install dependencies: `pip install -r requirements.txt`" in result.instructions
    assert "4. Start development server: `uvicorn app.main:app --reload`" in result.instructions
    assert not any("npm" in line for line in result.instructions)
    assert "npm" not in readme.content


def test_node_target_keeps_npm_commands():
    """Test the npm commands for a JavaScript target."""
    result = _service().combine(CombinationRequest(_nextjs_pair(), "Shop"))

    assert result.deployment_config.build_command == "npm run build"
    assert "2. Install dependencies: `npm install`" in result.instructions
    assert "- Or build for production: `npm run build`" in result.instructions
