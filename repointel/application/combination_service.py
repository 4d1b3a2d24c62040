"""Combines several analyzed repositories into one project skeleton."""
import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from repointel.application.repository_analyzer import (
    GENERIC_STRUCTURE,
    analyze_repository,
    dominant_framework,
    structure_for,
)
from repointel.domain.combination_interface import ICombinationStorage
from repointel.domain.models import (
    CombinationRequest,
    CombinationResult,
    ComponentMerging,
    ConflictResolution,
    DependencyStrategy,
    DeploymentConfig,
    DeploymentPlatform,
    FileType,
    Framework,
    GeneratedFile,
    MergeStrategy,
    ProjectStructure,
    RepositoryAnalysis,
)


logger = logging.getLogger(__name__)

BASE_SCRIPTS = {
    "dev": "npm run dev",
    "build": "npm run build",
    "start": "npm start",
    "lint": "eslint . --ext .ts,.tsx",
    "type-check": "tsc --noEmit",
}

FRAMEWORK_SCRIPTS: Dict[Framework, Dict[str, str]] = {
    Framework.NEXTJS: {"dev": "next dev", "build": "next build", "start": "next start"},
    Framework.REMIX: {"dev": "remix dev", "build": "remix build", "start": "remix-serve build"},
    Framework.REACT: {"dev": "vite", "build": "vite build", "start": "vite preview"},
    Framework.VUE: {"dev": "vite", "build": "vue-tsc && vite build", "start": "vite preview"},
    Framework.ANGULAR: {"dev": "ng serve", "build": "ng build", "start": "ng serve --configuration production"},
    Framework.EXPRESS: {"dev": "nodemon src/server.ts", "build": "tsc", "start": "node dist/server.js"},
    Framework.FASTAPI: {"dev": "uvicorn app.main:app --reload", "build": "pip install -r requirements.txt", "start": "uvicorn app.main:app"},
    Framework.DJANGO: {"dev": "python manage.py runserver", "build": "python manage.py collectstatic --noinput", "start": "gunicorn project.wsgi"},
}

PYTHON_FRAMEWORKS = (Framework.FASTAPI, Framework.DJANGO)

NODE_COMMANDS = {
    "install": "npm install",
    "dev": "npm run dev",
    "build": "npm run build",
    "start": "npm start",
}

FOLDER_DESCRIPTIONS = {
    "app": "Main application code (Remix/Next.js)",
    "src": "Source code directory",
    "components": "Reusable UI components",
    "lib": "Utility functions and services",
    "public": "Static assets",
    "styles": "CSS and styling files",
    "routes": "Route components",
    "hooks": "Custom React hooks",
    "utils": "Utility functions",
    "types": "TypeScript type definitions",
}

DEPLOYMENT_ENV_VARS = ("GITHUB_TOKEN", "DATABASE_URL")

COMPONENT_EXTENSIONS = {
    Framework.VUE: "vue",
    Framework.FASTAPI: "py",
    Framework.DJANGO: "py",
}

ID_REPOSITORY_CHARS = 20


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "project"


def _unique(values) -> List[str]:
    return list(dict.fromkeys(values))


def setup_commands(framework: Framework) -> Dict[str, str]:
    """Install, dev, build and start commands run from the project root."""
    if framework in PYTHON_FRAMEWORKS:
        return {"install": "pip install -r requirements.txt", **FRAMEWORK_SCRIPTS[framework]}
    return dict(NODE_COMMANDS)


def folder_description(folder: str) -> str:
    return FOLDER_DESCRIPTIONS.get(folder.rsplit("/", 1)[-1], "Project files")


class CombinationService:
    """Application service that merges repositories into a project skeleton.

    The merge policies are engine-wide defaults passed at construction time;
    the target framework is the only per-request decision.
    """

    def __init__(
        self,
        storage: ICombinationStorage,
        conflict_resolution: ConflictResolution = ConflictResolution.SMART_MERGE,
        component_merging: ComponentMerging = ComponentMerging.SELECTIVE,
        dependency_strategy: DependencyStrategy = DependencyStrategy.UNIFIED,
        clock: Callable[[], float] = time.time
    ):
        """Initialize combination service.

        Args:
            storage: Where finished combinations are kept
            conflict_resolution: How project structures are merged
            component_merging: Which components get stubs
            dependency_strategy: How dependency manifests are laid out
            clock: Returns the current epoch time in seconds
        """
        self._storage = storage
        self._conflict_resolution = conflict_resolution
        self._component_merging = component_merging
        self._dependency_strategy = dependency_strategy
        self._clock = clock

    def determine_strategy(
        self,
        analyses: List[RepositoryAnalysis],
        target_framework: Optional[Framework] = None
    ) -> MergeStrategy:
        """Pick the target framework and attach the engine's merge policies."""
        framework = target_framework or dominant_framework(
            [analysis.framework for analysis in analyses]
        )
        return MergeStrategy(
            target_framework=framework,
            conflict_resolution=self._conflict_resolution,
            component_merging=self._component_merging,
            dependency_strategy=self._dependency_strategy
        )

    def combine(self, request: CombinationRequest) -> CombinationResult:
        """Combine the requested repositories and store the result.

        Args:
            request: Repositories, project name and optional target framework

        Returns:
            CombinationResult, also retrievable later by id
        """
        created = self._clock()
        combination_id = self.combination_id(request, created)
        analyses = [analyze_repository(repo) for repo in request.repositories]

        strategy = self.determine_strategy(analyses, request.target_framework)
        structure = self.merge_structure(analyses, strategy)
        dependencies = self.resolve_dependencies(analyses)
        scripts = self.generate_scripts(strategy.target_framework)

        result = CombinationResult(
            id=combination_id,
            name=request.project_name,
            description=request.description or (
                f"Combined project from {len(request.repositories)} repositories"
            ),
            strategy=strategy,
            structure=structure,
            files=self.generate_files(request, analyses, structure, strategy, dependencies, scripts),
            dependencies=dependencies,
            scripts=scripts,
            deployment_config=self.generate_deployment_config(strategy.target_framework),
            instructions=self.generate_instructions(request, structure, strategy.target_framework),
            repository_ids=tuple(repo.id for repo in request.repositories),
            created_at=datetime.fromtimestamp(created, tz=timezone.utc)
        )

        self._storage.save(result)
        logger.info(
            f"Combined {len(analyses)} repositories into {result.name} "
            f"({strategy.target_framework.value}, {len(dependencies)} dependencies)"
        )
        return result

    def get(self, combination_id: str) -> Optional[CombinationResult]:
        return self._storage.get(combination_id)

    def list_all(self) -> List[CombinationResult]:
        return self._storage.list_all()

    @staticmethod
    def combination_id(request: CombinationRequest, created: float) -> str:
        repo_ids = "-".join(str(repo_id) for repo_id in sorted(repo.id for repo in request.repositories))
        return f"combo-{int(created * 1000)}-{repo_ids[:ID_REPOSITORY_CHARS]}"

    @staticmethod
    def merge_structure(analyses: List[RepositoryAnalysis], strategy: MergeStrategy) -> ProjectStructure:
        """Project layout according to the conflict-resolution policy.

        ``overwrite`` keeps the first repository's layout, ``merge`` unions
        every layout and ``smart-merge`` uses the target framework's template.
        """
        if strategy.conflict_resolution == ConflictResolution.OVERWRITE:
            return analyses[0].structure if analyses else GENERIC_STRUCTURE

        if strategy.conflict_resolution == ConflictResolution.MERGE:
            structures = [structure_for(strategy.target_framework)]
            structures.extend(analysis.structure for analysis in analyses)
            return ProjectStructure(
                folders=tuple(_unique(f for s in structures for f in s.folders)),
                entry_points=tuple(_unique(e for s in structures for e in s.entry_points)),
                config_files=tuple(_unique(c for s in structures for c in s.config_files)),
                asset_folders=tuple(_unique(a for s in structures for a in s.asset_folders))
            )

        return structure_for(strategy.target_framework)

    @staticmethod
    def resolve_dependencies(analyses: List[RepositoryAnalysis]) -> List[str]:
        """Union of inferred dependencies, deduplicated in first-seen order."""
        return _unique(dep for analysis in analyses for dep in analysis.dependencies)

    @staticmethod
    def generate_scripts(framework: Framework) -> Dict[str, str]:
        if framework in PYTHON_FRAMEWORKS:
            return dict(FRAMEWORK_SCRIPTS[framework])
        return {**BASE_SCRIPTS, **FRAMEWORK_SCRIPTS.get(framework, {})}

    @staticmethod
    def generate_deployment_config(framework: Framework) -> DeploymentConfig:
        if framework in PYTHON_FRAMEWORKS:
            output_directory = "."
        elif framework == Framework.NEXTJS:
            output_directory = ".next"
        else:
            output_directory = "build"
        return DeploymentConfig(
            platform=DeploymentPlatform.VERCEL,
            env_vars=DEPLOYMENT_ENV_VARS,
            build_command=setup_commands(framework)["build"],
            output_directory=output_directory
        )

    def generate_files(
        self,
        request: CombinationRequest,
        analyses: List[RepositoryAnalysis],
        structure: ProjectStructure,
        strategy: MergeStrategy,
        dependencies: List[str],
        scripts: Dict[str, str]
    ) -> List[GeneratedFile]:
        """File stubs for the combined project."""
        project = _slug(request.project_name)
        sources = ", ".join(analysis.repository.full_name for analysis in analyses) or project
        files = [self._manifest("", project, strategy.target_framework, dependencies, scripts, sources)]

        if strategy.dependency_strategy != DependencyStrategy.UNIFIED:
            root = "packages" if strategy.dependency_strategy == DependencyStrategy.SEPARATE else "apps"
            for analysis in analyses:
                package_name = _slug(analysis.repository.name)
                files.append(self._manifest(
                    f"{root}/{package_name}/",
                    package_name,
                    analysis.framework,
                    list(analysis.dependencies),
                    self.generate_scripts(analysis.framework),
                    analysis.repository.full_name
                ))

        files.append(GeneratedFile(
            path=".env.example",
            content="".join(f"{name}=\n" for name in DEPLOYMENT_ENV_VARS),
            type=FileType.CONFIG,
            source=sources
        ))
        instructions = self.generate_instructions(request, structure, strategy.target_framework)
        files.append(GeneratedFile(
            path="README.md",
            content=f"# {request.project_name}\n\n" + "\n".join(instructions) + "\n",
            type=FileType.UTILITY,
            source=sources
        ))
        for entry_point in structure.entry_points:
            files.append(GeneratedFile(
                path=entry_point,
                content=f"// Entry point for {request.project_name}, merged from {sources}\n",
                type=FileType.COMPONENT,
                source=sources
            ))
        files.extend(self._component_files(analyses, structure, strategy))
        return files

    @staticmethod
    def _manifest(
        prefix: str,
        name: str,
        framework: Framework,
        dependencies: List[str],
        scripts: Dict[str, str],
        source: str
    ) -> GeneratedFile:
        if framework in PYTHON_FRAMEWORKS:
            return GeneratedFile(
                path=f"{prefix}requirements.txt",
                content="".join(f"{dep}\n" for dep in dependencies),
                type=FileType.CONFIG,
                source=source
            )
        manifest = {
            "name": name,
            "version": "0.1.0",
            "private": True,
            "scripts": scripts,
            "dependencies": {dep: "latest" for dep in dependencies},
        }
        return GeneratedFile(
            path=f"{prefix}package.json",
            content=json.dumps(manifest, indent=2) + "\n",
            type=FileType.CONFIG,
            source=source
        )

    @staticmethod
    def _component_files(
        analyses: List[RepositoryAnalysis],
        structure: ProjectStructure,
        strategy: MergeStrategy
    ) -> List[GeneratedFile]:
        """Component stubs chosen by the component-merging policy.

        ``all`` keeps every repository's copy, ``selective`` keeps the first
        repository offering a component and ``best-of-breed`` the one with
        the highest quality score.
        """
        components_dir = next(
            (folder for folder in structure.folders if folder.endswith("components")),
            structure.folders[0] if structure.folders else "src"
        )
        extension = COMPONENT_EXTENSIONS.get(strategy.target_framework, "tsx")

        picks = []
        if strategy.component_merging == ComponentMerging.ALL:
            picks = [(component, analysis) for analysis in analyses for component in analysis.components]
        else:
            chosen: Dict[str, RepositoryAnalysis] = {}
            for analysis in analyses:
                for component in analysis.components:
                    current = chosen.get(component)
                    if current is None or (
                        strategy.component_merging == ComponentMerging.BEST_OF_BREED
                        and analysis.quality_score > current.quality_score
                    ):
                        chosen[component] = analysis
            picks = list(chosen.items())

        files = []
        for component, analysis in picks:
            suffix = "" if strategy.component_merging != ComponentMerging.ALL else f"-{_slug(analysis.repository.name)}"
            files.append(GeneratedFile(
                path=f"{components_dir}/{_slug(component)}{suffix}/index.{extension}",
                content=f"// {component} adapted from {analysis.repository.full_name}\n",
                type=FileType.COMPONENT,
                source=analysis.repository.full_name
            ))
        return files

    @staticmethod
    def generate_instructions(
        request: CombinationRequest,
        structure: ProjectStructure,
        framework: Framework
    ) -> List[str]:
        """Ordered setup instructions for the combined project."""
        commands = setup_commands(framework)
        instructions = [
            "Setup Instructions",
            "",
            "1. Clone or download the generated project",
            f"2. Install dependencies: `{commands['install']}`",
            "3. Copy `.env.example` to `.env` and configure your environment variables",
            f"4. Start development server: `{commands['dev']}`",
            "",
            "Project Structure",
        ]
        instructions.extend(f"- /{folder}/ - {folder_description(folder)}" for folder in structure.folders)

        if request.features:
            instructions.extend(["", "Requested Features"])
            instructions.extend(f"- {feature}" for feature in request.features)

        instructions.extend([
            "",
            "Configuration",
            "- Update environment variables in `.env`",
            "- Customize configuration files as needed",
            "- Review and modify generated components",
            "",
            "Deployment",
            "- Deploy to Vercel: `vercel --prod`",
            f"- Or build for production: `{commands['build']}`",
            "",
            "Source Repositories",
        ])
        instructions.extend(
            f"- [{repo.full_name}]({repo.html_url}) - {repo.description or 'No description'}"
            for repo in request.repositories
        )
        return instructions
