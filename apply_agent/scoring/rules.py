"""Static rule tables for the MERN / React profile the agent applies for."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SkillDefinition:
    name: str
    required_terms: tuple[str, ...]
    primary: tuple[str, ...]
    related: tuple[str, ...]
    weight: int


def _skill(name: str, weight: int, required: list[str], primary: list[str], related: list[str]) -> SkillDefinition:
    return SkillDefinition(name, tuple(required), tuple(primary), tuple(related), weight)


# Company names are matched as case-insensitive substrings
BLOCKED_COMPANIES: tuple[str, ...] = (
    # Recruitment agencies
    "rgb", "gedu", "uplers", "leading client",
    # Mass recruiters / service companies
    "accenture", "accenture solutions", "accenture india", "accenture pvt",
    "accenture limited", "tcs", "tata consultancy", "tcs limited", "wipro",
    "infosys", "cognizant", "capgemini", "hcl", "tech mahindra",
)

SKILL_DEFINITIONS: tuple[SkillDefinition, ...] = (
    # Core frameworks
    _skill("React", 8, ["react"], ["react", "reactjs", "react.js"], ["javascript", "components", "jsx"]),
    _skill("Next.js", 6, ["next.js", "nextjs"], ["next.js", "nextjs", "next-js"],
           ["ssr", "server side rendering", "static site generation", "app router"]),
    _skill("Node.js", 7, ["node"], ["node", "node.js", "nodejs", "node js"], ["backend", "server", "express"]),
    _skill("Express.js", 6, ["express"], ["express", "express.js", "expressjs"], ["rest api", "restful api", "api"]),
    _skill("MongoDB", 6, ["mongodb", "mongo"], ["mongodb", "mongo db", "mongo"], ["nosql", "database", "mongoose"]),
    # Frontend
    _skill("TypeScript", 5, ["typescript", "ts"], ["typescript", "ts"], ["type safety", "static typing"]),
    _skill("JavaScript", 4, ["javascript", "js"], ["javascript", "es6", "es6+", "ecmascript"], ["js", "vanilla js"]),
    _skill("HTML5", 2, ["html"], ["html", "html5"], ["semantic html", "dom"]),
    _skill("CSS3", 2, ["css"], ["css", "css3"], ["styling", "responsive design"]),
    _skill("Tailwind CSS", 3, ["tailwind"], ["tailwind", "tailwind css", "tailwindcss"], ["utility-first css"]),
    _skill("SASS/SCSS", 2, ["sass", "scss"], ["sass", "scss", "sass css"], ["css preprocessor"]),
    # State management
    _skill("Redux", 5, ["redux"], ["redux", "redux toolkit", "reduxjs"], ["state management", "global state"]),
    _skill("React Query", 4, ["react query", "tanstack query"], ["react query", "tanstack query"],
           ["data fetching", "server state"]),
    _skill("Context API", 3, ["context api", "react context"], ["context api", "react context"],
           ["state management", "react hooks"]),
    _skill("Zustand", 3, ["zustand"], ["zustand"], ["state management"]),
    _skill("MobX", 3, ["mobx"], ["mobx"], ["state management"]),
    # Testing
    _skill("Jest", 4, ["jest"], ["jest"], ["unit testing", "testing framework"]),
    _skill("React Testing Library", 4, ["testing-library", "rtl"],
           ["@testing-library/react", "react testing library", "rtl"], ["component testing", "testing"]),
    _skill("Cypress", 3, ["cypress"], ["cypress", "e2e testing"], ["end-to-end testing", "integration testing"]),
    _skill("Mocha/Chai", 2, ["mocha", "chai"], ["mocha", "chai"], ["testing framework"]),
    # DevOps & cloud
    _skill("GitHub", 4, ["github"], ["github", "git hub"], ["git", "version control", "ci/cd", "github actions"]),
    _skill("Git", 3, ["git"], ["git"], ["version control", "repository", "branch", "commit", "merge", "pull request"]),
    _skill("Docker", 5, ["docker"], ["docker", "docker container"], ["containerization", "kubernetes", "container"]),
    _skill("CI/CD", 4, ["ci/cd", "cicd", "continuous integration", "continuous deployment"],
           ["ci/cd", "cicd", "ci cd", "continuous integration", "continuous deployment"],
           ["jenkins", "gitlab ci", "github actions", "pipeline"]),
    _skill("AWS", 4, ["aws", "amazon web services"], ["aws", "amazon web services"],
           ["ec2", "s3", "lambda", "dynamodb", "rds", "cloud"]),
    _skill("Cloud Platforms", 3, ["azure", "gcp", "firebase"], ["azure", "gcp", "google cloud", "firebase"],
           ["cloud hosting", "serverless"]),
    _skill("Kubernetes", 3, ["kubernetes", "k8s"], ["kubernetes", "k8s"], ["container orchestration", "docker", "pods"]),
    # Build tools
    _skill("Webpack", 3, ["webpack"], ["webpack"], ["bundler", "build tool", "module bundler"]),
    _skill("Vite", 3, ["vite"], ["vite"], ["build tool", "dev server", "bundler"]),
    _skill("Babel", 2, ["babel"], ["babel"], ["transpiler", "compiler"]),
    # APIs & data
    _skill("REST API", 5, ["rest api", "restful"], ["rest api", "restful api"], ["http", "restful", "api integration"]),
    _skill("GraphQL", 4, ["graphql"], ["graphql"], ["api", "query language", "apollo"]),
    _skill("REST", 3, ["rest"], ["rest"], ["http methods", "api endpoints"]),
    _skill("Axios", 3, ["axios"], ["axios"], ["http client", "api calls", "fetch"]),
    _skill("Fetch API", 2, ["fetch"], ["fetch", "fetch api"], ["http requests", "async/await"]),
    # Authentication
    _skill("JWT", 4, ["jwt", "json web token"], ["jwt", "json web token", "jsonwebtoken"],
           ["authentication", "token", "oauth"]),
    _skill("OAuth", 3, ["oauth"], ["oauth", "oauth2", "oauth 2.0"], ["authentication", "authorization", "social login"]),
    _skill("Authentication", 3, ["authentication", "auth"], ["authentication", "auth", "login"],
           ["user auth", "session management"]),
    # Other libraries
    _skill("React Router", 4, ["react router", "react-router"], ["react router", "react-router"], ["routing", "navigation"]),
    _skill("Material UI", 3, ["material ui", "mui"], ["material ui", "mui", "material-design"],
           ["ui framework", "component library"]),
    _skill("Ant Design", 3, ["ant design", "antd"], ["ant design", "antd"], ["ui library", "component library"]),
    _skill("Styled Components", 3, ["styled-components", "styled components"],
           ["styled-components", "styled components"], ["css-in-js", "component styling"]),
    _skill("Form Handling", 3, ["react-hook-form", "formik"], ["react-hook-form", "formik", "redux-form"],
           ["form validation", "form management"]),
    # Performance
    _skill("Performance Optimization", 4, ["performance", "optimization", "optimisation"],
           ["performance optimization", "web performance", "load time"],
           ["lazy loading", "code splitting", "memoization"]),
    _skill("Web Vitals", 2, ["web vitals", "lcp", "cls"], ["web vitals", "lcp", "cls", "fid"],
           ["performance metrics", "core web vitals"]),
    # Process
    _skill("Agile/Scrum", 2, ["agile", "scrum"], ["agile", "scrum", "sprint"], ["jira", "standup", "kanban"]),
    _skill("Jira", 1, ["jira"], ["jira"], ["project management", "issue tracking"]),
)

MAX_POSSIBLE_SCORE: int = sum(s.weight for s in SKILL_DEFINITIONS)

CORE_STACK: frozenset[str] = frozenset({"React", "Node.js", "Express.js", "MongoDB"})
MIN_CORE_STACK_MATCHES = 2

# Substring of any tag; a bare java / c# tag adds one more
DISQUALIFYING_CHIPS: tuple[str, ...] = (
    "angular", "vue", "vue.js", "vuejs", "php", ".net", "django", "laravel",
    "spring", "j2ee", "hibernate", "jms", "jpa", "sybase", "memsql",
)
BARE_LANGUAGE_CHIPS: frozenset[str] = frozenset({"java", "c#", "csharp"})
DISQUALIFYING_CHIP_LIMIT = 2

JAVA_STACK_TERMS: tuple[str, ...] = ("java", "j2ee", "spring", "hibernate", "jms", "jpa")
JAVA_STACK_LIMIT = 2

BONUS_KEYWORDS: tuple[tuple[str, float], ...] = (
    # React
    ("react hooks", 1.5), ("functional components", 1.2), ("performance optimization", 1.4),
    ("react context", 1.3), ("memoization", 1.2), ("lazy loading", 1.1), ("code splitting", 1.0),
    ("react router", 1.2), ("react query", 1.3), ("useeffect", 1.0), ("usestate", 1.0),
    ("custom hooks", 1.4), ("higher order components", 1.2), ("props drilling", 0.8),
    ("virtual dom", 1.0), ("fiber", 1.0),
    # Node / Express
    ("express.js", 1.3), ("expressjs", 1.3), ("rest api", 1.4), ("restful api", 1.4),
    ("api development", 1.3), ("api integration", 1.2), ("authentication", 1.3),
    ("jwt authentication", 1.4), ("oauth", 1.2), ("middleware", 1.1), ("mongoose", 1.3),
    ("mongodb", 1.3), ("nosql", 1.2), ("node.js", 1.3), ("async await", 1.0),
    ("promises", 1.0), ("event loop", 1.1),
    # DevOps / cloud
    ("github", 1.2), ("git", 1.0), ("docker", 1.4), ("docker container", 1.5), ("ci/cd", 1.4),
    ("cicd", 1.4), ("continuous integration", 1.3), ("continuous deployment", 1.3), ("aws", 1.3),
    ("amazon web services", 1.3), ("ec2", 1.2), ("s3", 1.1), ("lambda", 1.2), ("kubernetes", 1.3),
    ("k8s", 1.2), ("jenkins", 1.2), ("github actions", 1.3), ("pipeline", 1.1),
    # State management
    ("redux", 1.4), ("redux toolkit", 1.5), ("zustand", 1.2), ("mobx", 1.2), ("context api", 1.2),
    # Testing
    ("jest", 1.3), ("unit testing", 1.2), ("integration testing", 1.3), ("e2e testing", 1.3),
    ("cypress", 1.2), ("testing library", 1.2),
    # TypeScript / tooling
    ("typescript", 1.3), ("next.js", 1.4), ("nextjs", 1.4), ("webpack", 1.1), ("vite", 1.2),
    ("tailwind css", 1.2), ("graphql", 1.3),
)

KEYWORD_TRIPLETS: tuple[tuple[str, str, str], ...] = (
    # MERN
    ("react", "javascript", "frontend"),
    ("react", "typescript", "frontend"),
    ("react", "hooks", "components"),
    ("react", "performance", "optimization"),
    ("frontend", "react", "developer"),
    # Node / Express
    ("node", "express", "api"),
    ("node", "mongodb", "backend"),
    ("express", "mongodb", "rest api"),
    ("node.js", "rest api", "backend"),
    ("nodejs", "express", "mongoose"),
    # DevOps
    ("docker", "container", "deployment"),
    ("ci/cd", "github", "pipeline"),
    ("aws", "ec2", "cloud"),
    ("docker", "kubernetes", "orchestration"),
    ("github", "actions", "ci/cd"),
    ("docker", "ci/cd", "pipeline"),
    # Full stack
    ("react", "node", "fullstack"),
    ("react", "node.js", "full stack"),
    ("mern", "stack", "developer"),
    ("frontend", "backend", "api"),
    ("javascript", "node", "react"),
)
TRIPLET_BONUS = 1.0

TITLE_TARGET_BONUS = 12
TITLE_CONFLICT_PENALTY = 50

PRIMARY_TAG_BONUS = 0.15
RELATED_WEIGHT = 0.5
RELATED_TAG_BONUS = 0.2

MIN_JOB_REQUIRED_SCORE = 8
DEMAND_MATCH_THRESHOLD = 45.0
LOOSE_MATCH_THRESHOLD = 25.0
BADGE_MATCH_THRESHOLD = 35.0
LOW_MATCH_CEILING = 40.0

APPLICANTS_PER_OPENING = 1300
MIN_APPLICANT_CAP = 100

MIN_EXPERIENCE_YEARS = 1
MAX_EXPERIENCE_YEARS = 3
