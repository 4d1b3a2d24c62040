"""Metadata-only repository analysis: framework, components, dependencies, features.

Detection is keyword based and deliberately fuzzy: a repository that merely
mentions "react" in its description is classified as React. Downstream
merge decisions are defined against these exact tables.
"""
from collections import Counter
from typing import Dict, List, Tuple
from repointel.domain.models import Framework, ProjectStructure, Repository, RepositoryAnalysis


# Priority order matters: the first match wins.
FRAMEWORK_KEYWORDS: List[Tuple[Framework, Tuple[str, ...]]] = [
    (Framework.NEXTJS, ("nextjs", "next.js")),
    (Framework.REMIX, ("remix",)),
    (Framework.REACT, ("react",)),
    (Framework.VUE, ("vue",)),
    (Framework.ANGULAR, ("angular",)),
    (Framework.EXPRESS, ("express",)),
    (Framework.FASTAPI, ("fastapi",)),
    (Framework.DJANGO, ("django",)),
]

COMPONENT_PATTERNS = (
    "authentication", "auth", "login",
    "dashboard", "admin", "panel",
    "chat", "messaging", "communication",
    "payment", "stripe", "billing",
    "database", "orm", "prisma",
    "api", "rest", "graphql",
    "ui", "components", "design-system",
    "charts", "visualization", "analytics",
    "file-upload", "storage", "aws",
    "email", "notifications", "smtp",
)

FRAMEWORK_DEPENDENCIES: Dict[Framework, Tuple[str, ...]] = {
    Framework.NEXTJS: ("next", "react", "react-dom"),
    Framework.REMIX: ("@remix-run/node", "@remix-run/react"),
    Framework.REACT: ("react", "react-dom"),
    Framework.VUE: ("vue",),
    Framework.ANGULAR: ("@angular/core", "@angular/common"),
    Framework.EXPRESS: ("express",),
    Framework.FASTAPI: ("fastapi", "uvicorn"),
    Framework.DJANGO: ("django",),
}

TOPIC_DEPENDENCIES: Dict[str, str] = {
    "typescript": "typescript",
    "tailwindcss": "tailwindcss",
    "prisma": "prisma",
    "stripe": "stripe",
    "framer-motion": "framer-motion",
}

FEATURE_PATTERNS: Dict[str, Tuple[str, ...]] = {
    "User Authentication": ("auth", "login", "jwt", "oauth"),
    "Database Integration": ("database", "orm", "prisma", "mongodb", "postgresql"),
    "Payment Processing": ("payment", "stripe", "billing", "checkout"),
    "File Upload": ("upload", "storage", "aws", "s3", "cloudinary"),
    "Real-time Features": ("websocket", "realtime", "socket.io", "sse"),
    "API Integration": ("api", "rest", "graphql", "fetch"),
    "UI Components": ("components", "ui", "design-system", "tailwind"),
    "Charts & Analytics": ("charts", "analytics", "visualization", "d3"),
    "Search Functionality": ("search", "elasticsearch", "algolia", "fuse"),
    "Email System": ("email", "smtp", "sendgrid", "mailgun"),
}

GENERIC_STRUCTURE = ProjectStructure(
    folders=("src", "components", "lib", "public"),
    entry_points=("src/App.tsx",),
    config_files=("package.json",),
    asset_folders=("public",),
)

STRUCTURES: Dict[Framework, ProjectStructure] = {
    Framework.NEXTJS: ProjectStructure(
        folders=("app", "components", "lib", "public", "styles"),
        entry_points=("app/page.tsx", "app/layout.tsx"),
        config_files=("next.config.js", "tailwind.config.js"),
        asset_folders=("public", "assets"),
    ),
    Framework.REMIX: ProjectStructure(
        folders=("app", "app/routes", "app/components", "app/lib", "public"),
        entry_points=("app/root.tsx", "app/routes/_index.tsx"),
        config_files=("remix.config.js", "tailwind.config.js"),
        asset_folders=("public",),
    ),
    Framework.REACT: ProjectStructure(
        folders=("src", "src/components", "src/hooks", "src/utils", "public"),
        entry_points=("src/App.tsx", "src/main.tsx"),
        config_files=("vite.config.ts", "tailwind.config.js"),
        asset_folders=("public", "src/assets"),
    ),
    Framework.VUE: ProjectStructure(
        folders=("src", "src/components", "src/composables", "src/views", "public"),
        entry_points=("src/App.vue", "src/main.ts"),
        config_files=("vite.config.ts",),
        asset_folders=("public", "src/assets"),
    ),
    Framework.ANGULAR: ProjectStructure(
        folders=("src", "src/app", "src/app/components", "src/environments"),
        entry_points=("src/main.ts", "src/app/app.component.ts"),
        config_files=("angular.json", "tsconfig.json"),
        asset_folders=("src/assets",),
    ),
    Framework.EXPRESS: ProjectStructure(
        folders=("src", "src/routes", "src/middleware", "src/services"),
        entry_points=("src/server.ts",),
        config_files=("tsconfig.json",),
        asset_folders=("public",),
    ),
    Framework.FASTAPI: ProjectStructure(
        folders=("app", "app/routers", "app/models", "tests"),
        entry_points=("app/main.py",),
        config_files=("pyproject.toml",),
        asset_folders=("static",),
    ),
    Framework.DJANGO: ProjectStructure(
        folders=("project", "apps", "templates", "static"),
        entry_points=("manage.py", "project/wsgi.py"),
        config_files=("project/settings.py",),
        asset_folders=("static",),
    ),
}


def _searchable_text(repo: Repository) -> str:
    return f"{repo.name} {repo.description or ''} {' '.join(repo.topics)}".lower()


def detect_framework(repo: Repository) -> Framework:
    text = _searchable_text(repo)
    for framework, keywords in FRAMEWORK_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return framework
    return Framework.UNKNOWN


def extract_components(repo: Repository) -> Tuple[str, ...]:
    description = (repo.description or "").lower()
    return tuple(
        pattern for pattern in COMPONENT_PATTERNS
        if pattern in repo.topics or pattern in description
    )


def infer_dependencies(repo: Repository, framework: Framework) -> Tuple[str, ...]:
    """Framework dependencies plus topic-triggered extras, deduplicated."""
    deps = list(FRAMEWORK_DEPENDENCIES.get(framework, ()))
    for topic in repo.topics:
        extra = TOPIC_DEPENDENCIES.get(topic.lower())
        if extra:
            deps.append(extra)
    return tuple(dict.fromkeys(deps))


def identify_features(repo: Repository) -> Tuple[str, ...]:
    text = _searchable_text(repo)
    return tuple(
        feature for feature, keywords in FEATURE_PATTERNS.items()
        if any(keyword in text for keyword in keywords)
    )


def structure_for(framework: Framework) -> ProjectStructure:
    return STRUCTURES.get(framework, GENERIC_STRUCTURE)


def analyze_repository(repo: Repository) -> RepositoryAnalysis:
    """Analyze a repository from its metadata alone."""
    framework = detect_framework(repo)
    return RepositoryAnalysis(
        repository=repo,
        framework=framework,
        components=extract_components(repo),
        dependencies=infer_dependencies(repo, framework),
        features=identify_features(repo),
        structure=structure_for(framework),
        quality_score=repo.quality_score or 0,
    )


def dominant_framework(frameworks: List[Framework]) -> Framework:
    """Most frequent framework; ties go to the first seen, empty input to React."""
    if not frameworks:
        return Framework.REACT
    return Counter(frameworks).most_common(1)[0][0]
