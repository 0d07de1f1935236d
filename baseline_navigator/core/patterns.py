"""
Static catalog of feature detection patterns.

PatternRegistry is the single source of truth for recognising CSS and
JavaScript feature usage in raw text, and for the curated relationships
between features (alternatives, upgrades, complements) used when
drafting recommendations.

Detection is regex based and does not parse the source: matches inside
comments or string literals are counted like real usage.
"""

import bisect
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Set

from baseline_navigator.core.models import MatchLocation, PatternDefinition

CSS_LANGUAGES = ("css", "scss", "sass", "less", "stylus")
JS_LANGUAGES = ("javascript", "typescript", "javascriptreact", "typescriptreact")
HTML_LANGUAGES = ("html", "vue", "svelte")

PATTERN_CATEGORIES = ("css", "js", "html", "api")
RISK_LEVELS = ("safe", "moderate", "experimental")


def _define(
    id: str,
    aliases: Sequence[str],
    patterns: Sequence[str],
    category: str,
    risk_level: str,
    subcategory: Optional[str] = None,
    alternatives: Sequence[str] = (),
    upgrade_to: Optional[str] = None,
    complementary: Sequence[str] = (),
    supersedes: Sequence[str] = (),
    description: Optional[str] = None,
    common_use_cases: Sequence[str] = (),
    flags: int = re.IGNORECASE,
) -> PatternDefinition:
    return PatternDefinition(
        id=id,
        aliases=tuple(aliases),
        patterns=tuple(re.compile(p, flags) for p in patterns),
        category=category,
        risk_level=risk_level,
        subcategory=subcategory,
        alternatives=tuple(alternatives),
        upgrade_to=upgrade_to,
        complementary=tuple(complementary),
        supersedes=tuple(supersedes),
        description=description,
        common_use_cases=tuple(common_use_cases),
    )


DEFAULT_PATTERNS: List[PatternDefinition] = [
    # CSS layout
    _define(
        "grid", ["css-grid", "display-grid"],
        [
            r"display:\s*grid",
            r"grid-template-(?:columns|rows|areas)",
            r"grid-(?:column|row)(?:-(?:start|end|gap))?",
            r"grid-auto-(?:flow|rows|columns)",
            r"grid-area",
        ],
        "css", "safe", subcategory="layout",
        complementary=["gap", "subgrid", "aspect-ratio"],
        supersedes=["float", "table-layout"],
        description="CSS Grid Layout - two-dimensional layout system",
        common_use_cases=["Page layouts", "Component grids", "Responsive designs"],
    ),
    _define(
        "subgrid", ["css-subgrid"],
        [r"grid-template-columns:\s*subgrid", r"grid-template-rows:\s*subgrid"],
        "css", "moderate", subcategory="layout",
        alternatives=["grid", "flexbox"],
        complementary=["grid", "gap"],
        description="CSS Subgrid - inherit grid tracks from parent",
        common_use_cases=["Nested grid alignment", "Complex layouts"],
    ),
    _define(
        "flexbox", ["css-flexbox", "flex"],
        [
            r"display:\s*flex",
            r"flex-(?:direction|wrap|flow|grow|shrink|basis)",
            r"(?:justify|align)-(?:content|items|self)",
            r"order:",
        ],
        "css", "safe", subcategory="layout",
        upgrade_to="grid",
        complementary=["gap", "align-items"],
        supersedes=["float", "inline-block"],
        description="CSS Flexbox - one-dimensional layout system",
        common_use_cases=["Navigation bars", "Card layouts", "Centering"],
    ),
    _define(
        "gap", ["css-gap", "grid-gap"],
        [r"(?:^|[^-])gap:", r"(?:column|row)-gap:", r"grid-gap:"],
        "css", "safe", subcategory="layout",
        complementary=["grid", "flexbox"],
        description="Gap property for grid and flexbox",
        common_use_cases=["Spacing grid items", "Flexbox spacing"],
    ),

    # CSS responsive and container
    _define(
        "container-queries", ["css-container-queries", "container"],
        [r"@container(?:\s+[\w-]+)?(?:\s*\([^)]+\))?", r"container-(?:type|name):"],
        "css", "experimental", subcategory="responsive",
        alternatives=["media-queries", "clamp", "viewport-units"],
        complementary=["clamp", "aspect-ratio"],
        description="Container Queries - responsive design based on container size",
        common_use_cases=["Component-level responsive design", "Modular components"],
    ),
    _define(
        "aspect-ratio", ["css-aspect-ratio"],
        [r"aspect-ratio:"],
        "css", "safe", subcategory="sizing",
        alternatives=["padding-hack"],
        complementary=["grid", "object-fit"],
        description="CSS aspect-ratio property",
        common_use_cases=["Video containers", "Image placeholders", "Card layouts"],
    ),

    # CSS selectors
    _define(
        "has", ["css-has", ":has"],
        [r":has\s*\([^)]+\)"],
        "css", "moderate", subcategory="selectors",
        alternatives=["css-not", "css-is", "css-where"],
        description=":has() selector - parent selector",
        common_use_cases=["Parent state based on children", "Conditional styling"],
    ),
    _define(
        "css-nesting", ["css-nesting-1", "native-css-nesting"],
        [r"&\s*\{", r"&\s*[\.:]", r"&\s+[\w]"],
        "css", "moderate", subcategory="syntax",
        alternatives=["sass", "postcss", "separate-selectors"],
        description="Native CSS Nesting",
        common_use_cases=["Organized stylesheets", "Component styling"],
    ),
    _define(
        "css-is", [":is", "css-matches"],
        [r":is\s*\([^)]+\)", r":matches\s*\([^)]+\)"],
        "css", "safe", subcategory="selectors",
        complementary=["css-where", "css-not"],
        description=":is() selector - matches any selector in list",
        common_use_cases=["Simplified selectors", "Reduced specificity"],
    ),
    _define(
        "css-where", [":where"],
        [r":where\s*\([^)]+\)"],
        "css", "safe", subcategory="selectors",
        complementary=["css-is", "css-not"],
        description=":where() selector - zero specificity",
        common_use_cases=["Reset styles", "Low-specificity rules"],
    ),
    _define(
        "css-not", [":not", "not-selector-list"],
        [r":not\s*\([^)]+\)"],
        "css", "safe", subcategory="selectors",
        complementary=["css-is", "css-where"],
        description=":not() selector - negation pseudo-class",
        common_use_cases=["Excluding elements", "Exception styling"],
    ),

    # CSS custom properties and functions
    _define(
        "custom-properties", ["css-variables", "css-custom-properties"],
        [r"--[\w-]+\s*:", r"var\s*\(\s*--[\w-]+"],
        "css", "safe", subcategory="values",
        complementary=["calc", "clamp"],
        description="CSS Custom Properties (Variables)",
        common_use_cases=["Theming", "Dynamic values", "Design systems"],
    ),
    _define(
        "calc", ["css-calc"],
        [r"calc\s*\([^)]+\)"],
        "css", "safe", subcategory="values",
        complementary=["custom-properties", "clamp"],
        description="CSS calc() function",
        common_use_cases=["Dynamic sizing", "Responsive layouts"],
    ),
    _define(
        "clamp", ["css-clamp"],
        [r"clamp\s*\([^)]+\)"],
        "css", "safe", subcategory="values",
        complementary=["calc", "custom-properties", "min", "max"],
        description="CSS clamp() function - responsive sizing",
        common_use_cases=["Fluid typography", "Responsive spacing"],
    ),
    _define(
        "min", ["css-min"],
        [r"min\s*\([^)]+\)"],
        "css", "safe", subcategory="values",
        complementary=["max", "clamp", "calc"],
        description="CSS min() function",
        common_use_cases=["Constrained sizing", "Responsive values"],
    ),
    _define(
        "max", ["css-max"],
        [r"max\s*\([^)]+\)"],
        "css", "safe", subcategory="values",
        complementary=["min", "clamp", "calc"],
        description="CSS max() function",
        common_use_cases=["Constrained sizing", "Responsive values"],
    ),

    # CSS visual effects
    _define(
        "backdrop-filter", ["css-backdrop-filter"],
        [r"backdrop-filter:"],
        "css", "moderate", subcategory="effects",
        alternatives=["filter", "background-blur-polyfill"],
        complementary=["filter", "opacity"],
        description="Backdrop filter - blur/effects on background",
        common_use_cases=["Glassmorphism", "Modal overlays", "Frosted glass"],
    ),
    _define(
        "filter", ["css-filter", "css-filters"],
        [
            r"filter:\s*(?!none)[^;]+",
            r"(?:blur|brightness|contrast|grayscale|hue-rotate|invert|saturate|sepia)\s*\(",
        ],
        "css", "safe", subcategory="effects",
        complementary=["backdrop-filter", "mix-blend-mode"],
        description="CSS Filters",
        common_use_cases=["Image effects", "Visual enhancements"],
    ),

    # CSS animations and transitions
    _define(
        "css-animations", ["animations", "keyframes"],
        [
            r"@keyframes",
            r"animation(?:-name|-duration|-timing-function|-delay|-iteration-count"
            r"|-direction|-fill-mode|-play-state)?:",
        ],
        "css", "safe", subcategory="animation",
        complementary=["css-transitions", "transforms"],
        description="CSS Animations with @keyframes",
        common_use_cases=["Complex animations", "Loading states", "Attention grabbers"],
    ),
    _define(
        "css-transitions", ["transitions"],
        [r"transition(?:-property|-duration|-timing-function|-delay)?:"],
        "css", "safe", subcategory="animation",
        complementary=["css-animations", "transforms"],
        description="CSS Transitions",
        common_use_cases=["Hover effects", "State changes", "Smooth interactions"],
    ),
    _define(
        "transforms", ["css-transforms", "transform"],
        [r"transform:", r"(?:translate|rotate|scale|skew|matrix)(?:3d|X|Y|Z)?\s*\("],
        "css", "safe", subcategory="animation",
        complementary=["css-transitions", "css-animations"],
        description="CSS Transforms",
        common_use_cases=["Positioning", "Animations", "Visual effects"],
    ),

    # CSS scroll and interaction
    _define(
        "scroll-snap", ["css-scroll-snap"],
        [r"scroll-snap-(?:type|align|stop):"],
        "css", "safe", subcategory="scroll",
        alternatives=["smooth-scroll-library", "javascript"],
        complementary=["overflow", "scroll-behavior"],
        description="CSS Scroll Snap",
        common_use_cases=["Carousels", "Full-page sections", "Image galleries"],
    ),
    _define(
        "position-sticky", ["sticky", "css-sticky"],
        [r"position:\s*sticky"],
        "css", "safe", subcategory="positioning",
        alternatives=["position-fixed", "javascript"],
        description="Sticky positioning",
        common_use_cases=["Sticky headers", "Sidebar navigation", "Table headers"],
    ),
    _define(
        "overscroll-behavior", ["css-overscroll-behavior"],
        [r"overscroll-behavior(?:-x|-y)?:"],
        "css", "safe", subcategory="scroll",
        description="Overscroll behavior control",
        common_use_cases=["Modal scroll locking", "Prevent bounce", "Scroll boundaries"],
    ),

    # CSS cascade
    _define(
        "cascade-layers", ["css-cascade-layers", "@layer"],
        [r"@layer(?:\s+[\w-]+(?:\s*,\s*[\w-]+)*)?"],
        "css", "moderate", subcategory="cascade",
        alternatives=["specificity", "important"],
        description="CSS Cascade Layers",
        common_use_cases=["Managing specificity", "Design systems", "CSS architecture"],
    ),

    # CSS color
    _define(
        "color-mix", ["css-color-mix"],
        [r"color-mix\s*\([^)]+\)"],
        "css", "experimental", subcategory="color",
        alternatives=["custom-properties", "preprocessor"],
        complementary=["custom-properties"],
        description="CSS color-mix() function",
        common_use_cases=["Dynamic colors", "Theming", "Color variations"],
    ),

    # JavaScript APIs
    _define(
        "intersection-observer", ["intersectionobserver", "intersection-observer-api"],
        [r"new\s+IntersectionObserver", r"IntersectionObserver\s*\("],
        "js", "safe", subcategory="api",
        alternatives=["scroll-events", "polyfill"],
        description="Intersection Observer API",
        common_use_cases=["Lazy loading", "Infinite scroll", "Visibility tracking"],
    ),
    _define(
        "resize-observer", ["resizeobserver"],
        [r"new\s+ResizeObserver", r"ResizeObserver\s*\("],
        "js", "safe", subcategory="api",
        alternatives=["resize-events", "polyfill"],
        description="Resize Observer API",
        common_use_cases=["Responsive components", "Element size tracking"],
    ),
    _define(
        "mutation-observer", ["mutationobserver"],
        [r"new\s+MutationObserver", r"MutationObserver\s*\("],
        "js", "safe", subcategory="api",
        description="Mutation Observer API",
        common_use_cases=["DOM change detection", "Dynamic content"],
    ),
    _define(
        "fetch", ["fetch-api"],
        [r"\bfetch\s*\(", r"window\.fetch"],
        "js", "safe", subcategory="api",
        alternatives=["xhr", "axios"],
        complementary=["promises", "async-await"],
        supersedes=["xmlhttprequest"],
        description="Fetch API",
        common_use_cases=["HTTP requests", "API calls", "Data fetching"],
    ),
    _define(
        "custom-elements", ["web-components", "customelements"],
        [
            r"customElements\.define",
            r"class\s+\w+\s+extends\s+HTMLElement",
            r"window\.customElements",
        ],
        "js", "safe", subcategory="components",
        complementary=["shadow-dom", "html-templates"],
        description="Custom Elements (Web Components)",
        common_use_cases=["Reusable components", "Design systems"],
    ),
    _define(
        "shadow-dom", ["shadowdom", "shadow-root"],
        [r"\.attachShadow", r"\.shadowRoot"],
        "js", "safe", subcategory="components",
        complementary=["custom-elements", "html-templates"],
        description="Shadow DOM",
        common_use_cases=["Encapsulated styles", "Web components"],
    ),

    # JavaScript language features
    _define(
        "promises", ["promise"],
        [
            r"new\s+Promise",
            r"\.then\s*\(",
            r"\.catch\s*\(",
            r"Promise\.(?:all|race|any|allSettled)",
        ],
        "js", "safe", subcategory="async",
        upgrade_to="async-await",
        complementary=["fetch", "async-await"],
        description="JavaScript Promises",
        common_use_cases=["Async operations", "Error handling"],
    ),
    _define(
        "async-await", ["async-functions"],
        [
            r"async\s+function",
            r"async\s*\(",
            r"\basync\s+\w+\s*\(",
            r"\bawait\s+",
        ],
        "js", "safe", subcategory="async",
        complementary=["promises", "fetch"],
        supersedes=["promises"],
        description="Async/Await",
        common_use_cases=["Cleaner async code", "Sequential async operations"],
    ),
    _define(
        "optional-chaining", ["optional-chaining-operator"],
        [r"\?\."],
        "js", "safe", subcategory="syntax",
        complementary=["nullish-coalescing"],
        description="Optional Chaining (?.)",
        common_use_cases=["Safe property access", "Null checking"],
    ),
    _define(
        "nullish-coalescing", ["nullish-coalescing-operator"],
        [r"\?\?(?!\?)"],
        "js", "safe", subcategory="syntax",
        complementary=["optional-chaining"],
        description="Nullish Coalescing (??)",
        common_use_cases=["Default values", "Null handling"],
        flags=0,
    ),
    _define(
        "destructuring", ["destructuring-assignment"],
        [r"(?:const|let|var)\s*\{[^}]+\}\s*=", r"(?:const|let|var)\s*\[[^\]]+\]\s*="],
        "js", "safe", subcategory="syntax",
        description="Destructuring Assignment",
        common_use_cases=["Extract values", "Function parameters"],
    ),
    _define(
        "spread-operator", ["spread-syntax"],
        [r"\.{3}(?=[a-zA-Z_$])"],
        "js", "safe", subcategory="syntax",
        complementary=["destructuring"],
        description="Spread Operator (...)",
        common_use_cases=["Array/object copying", "Function arguments"],
        flags=0,
    ),
    _define(
        "es6-modules", ["import-export", "esm"],
        [
            r"\bimport\s+(?:[\w{},*\s]+\s+from\s+)?['\"]",
            r"\bexport\s+(?:default\s+)?(?:const|let|var|function|class)",
            r"\bexport\s+\{",
        ],
        "js", "safe", subcategory="modules",
        description="ES6 Modules (import/export)",
        common_use_cases=["Code organization", "Dependency management"],
    ),
    _define(
        "array-methods", ["array-iteration-methods"],
        [
            r"\.(?:map|filter|reduce|find|findIndex|some|every|forEach|includes|flat|flatMap)\s*\(",
        ],
        "js", "safe", subcategory="arrays",
        description="Modern Array Methods",
        common_use_cases=["Data transformation", "Array manipulation"],
    ),
]


def language_family(language_id: Optional[str]) -> Optional[str]:
    """Map an editor language id onto a pattern category (css, js or html)."""
    if not language_id:
        return None
    language_id = language_id.lower()
    if language_id in CSS_LANGUAGES:
        return "css"
    if language_id in JS_LANGUAGES:
        return "js"
    if language_id in HTML_LANGUAGES:
        return "html"
    return None


class PatternRegistry:
    """
    Registry of feature detection patterns.

    Builds an alias -> primary id map and a category -> ids index at
    construction; both are read-only afterwards.
    """

    def __init__(self, definitions: Optional[Iterable[PatternDefinition]] = None):
        self._patterns: Dict[str, PatternDefinition] = {}
        self._alias_map: Dict[str, str] = {}
        self._category_index: Dict[str, Set[str]] = {}
        self.logger = logging.getLogger("pattern_registry")

        for definition in (DEFAULT_PATTERNS if definitions is None else definitions):
            self._register(definition)

        self.logger.debug(
            f"Registered {len(self._patterns)} patterns, {len(self._alias_map)} aliases"
        )

    def _register(self, definition: PatternDefinition) -> None:
        if definition.category not in PATTERN_CATEGORIES:
            raise ValueError(f"Invalid category '{definition.category}' for {definition.id}")
        if definition.risk_level not in RISK_LEVELS:
            raise ValueError(f"Invalid risk level '{definition.risk_level}' for {definition.id}")

        primary = definition.id
        for key in (primary, *definition.aliases):
            key = key.lower()
            owner = self._alias_map.get(key)
            if owner is not None and owner != primary:
                raise ValueError(f"Alias '{key}' already registered for '{owner}'")
            self._alias_map[key] = primary

        self._patterns[primary] = definition
        self._category_index.setdefault(definition.category, set()).add(primary)

    def get_pattern(self, id_or_alias: str) -> Optional[PatternDefinition]:
        """Get pattern definition by id or alias (case-insensitive)."""
        normalized = id_or_alias.lower()
        if normalized in self._patterns:
            return self._patterns[normalized]

        primary = self._alias_map.get(normalized)
        if primary is not None:
            return self._patterns[primary]
        return None

    def get_patterns_by_category(self, category: str) -> List[PatternDefinition]:
        ids = self._category_index.get(category, set())
        return [p for pid, p in self._patterns.items() if pid in ids]

    def get_all_patterns(self) -> List[PatternDefinition]:
        return list(self._patterns.values())

    def _patterns_for_language(self, language_id: Optional[str]) -> List[PatternDefinition]:
        family = language_family(language_id)
        if family is None or family == "html":
            # HTML documents can embed both CSS and JS
            return self.get_all_patterns()
        return [p for p in self._patterns.values() if p.category == family]

    def detect_features(self, text: str, language_id: Optional[str] = None) -> Dict[str, int]:
        """
        Count feature usages in text.

        Args:
            text: Raw document text
            language_id: Optional editor language id restricting the pattern set

        Returns:
            Mapping of pattern id -> total match count; zero-count patterns omitted
        """
        detected: Dict[str, int] = {}
        if not text:
            return detected

        for pattern in self._patterns_for_language(language_id):
            total = sum(
                sum(1 for _ in regex.finditer(text)) for regex in pattern.patterns
            )
            if total > 0:
                detected[pattern.id] = total

        return detected

    def find_matches(self, pattern_id: str, text: str) -> List[MatchLocation]:
        """
        Exact locations of every regex hit of one pattern.

        Returns:
            MatchLocation list (1-based line/column) in regex order, then
            text order; empty for unknown patterns
        """
        pattern = self.get_pattern(pattern_id)
        if pattern is None or not text:
            return []

        line_starts = _line_starts(text)
        locations = []
        for regex in pattern.patterns:
            for match in regex.finditer(text):
                line, column = _position(line_starts, match.start())
                end_line, end_column = _position(line_starts, match.end())
                locations.append(MatchLocation(
                    line=line,
                    column=column,
                    end_line=end_line,
                    end_column=end_column,
                    matched_text=match.group(0),
                    offset=match.start(),
                ))
        return locations

    def resolve_feature_id(self, id_or_alias: str) -> Optional[str]:
        """Primary pattern id for an id or alias, or None."""
        return self._alias_map.get(id_or_alias.lower())

    def get_alternatives(self, feature_id: str) -> List[str]:
        pattern = self.get_pattern(feature_id)
        return list(pattern.alternatives) if pattern else []

    def get_complementary(self, feature_id: str) -> List[str]:
        pattern = self.get_pattern(feature_id)
        return list(pattern.complementary) if pattern else []

    def get_upgrade_path(self, feature_id: str) -> Optional[str]:
        pattern = self.get_pattern(feature_id)
        return pattern.upgrade_to if pattern else None

    def is_safe(self, feature_id: str) -> bool:
        pattern = self.get_pattern(feature_id)
        return pattern is not None and pattern.risk_level == "safe"

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, id_or_alias: str) -> bool:
        return self.get_pattern(id_or_alias) is not None


def _line_starts(text: str) -> List[int]:
    starts = [0]
    for match in re.finditer(r"\n", text):
        starts.append(match.end())
    return starts


def _position(line_starts: List[int], offset: int) -> tuple:
    index = bisect.bisect_right(line_starts, offset) - 1
    return index + 1, offset - line_starts[index] + 1


def create_pattern_registry(config: Optional[Dict] = None) -> PatternRegistry:
    """
    Factory function to create the pattern registry.

    Args:
        config: Optional dict; 'disabled_patterns' lists pattern ids to leave out

    Returns:
        PatternRegistry: Registry over the default catalog
    """
    disabled = set((config or {}).get('disabled_patterns', []))
    return PatternRegistry(p for p in DEFAULT_PATTERNS if p.id not in disabled)
