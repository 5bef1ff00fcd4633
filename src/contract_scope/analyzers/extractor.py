"""Per-file pattern extraction for Rust / Anchor / Solana programs."""

from typing import List, Optional, Tuple

from ..logging_config import get_logger
from ..models import (
    AccessControlPatterns,
    AnchorSpecificFeatures,
    DeFiPattern,
    EconomicRiskFactor,
    FunctionVisibility,
    OracleUsage,
    RawFileMetrics,
    Severity,
)
from .complexity import estimate_complexity
from .lines import count_logical_lines
from .math_ops import count_complex_math_operations, remove_comments_and_strings
from .rules import DEFI_TRIGGERS, ORACLE_RULES, RISK_FACTOR_RULES, get_rule

logger = get_logger(__name__)

# Every file is assumed to build against these crates
STANDARD_LIBRARIES = frozenset({"anchor_lang", "anchor_spl"})


def _count(rule_id: str, content: str) -> int:
    return get_rule(rule_id).count(content)


class PatternExtractor:
    """Runs the fixed battery of textual checks over one file.

    Stateless; one instance can be shared across threads.
    """

    def __init__(self, math_ops_warning_threshold: Optional[float] = None):
        self.math_ops_warning_threshold = math_ops_warning_threshold

    def extract(self, content: str, path: str = "") -> RawFileMetrics:
        num_functions = _count("structural.functions", content)
        unsafe_blocks = _count("security.unsafe_blocks", content)

        metrics = RawFileMetrics(
            path=path,
            lines_of_code=count_logical_lines(content),
            num_programs=_count("structural.programs", content),
            num_functions=num_functions,
            num_state_variables=self._count_state_variables(content),
            complexity=estimate_complexity(content, num_functions),
            composition_depth=self._max_nesting_depth(content),
            function_visibility=FunctionVisibility(
                public=_count("structural.public_functions", content),
                private=_count("structural.private_functions", content),
            ),
            pure_functions=num_functions,
            integer_overflow_risks=_count("economic.overflow_risk", content),
            unsafe_code_blocks=unsafe_blocks,
            panic_usage=_count("security.panics", content),
            unwrap_usage=_count("security.unwraps", content),
            expect_usage=_count("security.expects", content),
            match_without_default=_count("security.match_without_default", content),
            memory_safety_issues=unsafe_blocks,
            standard_library_usage=STANDARD_LIBRARIES,
            oracle_usage=self._detect_oracles(content),
            access_control_patterns=AccessControlPatterns(custom=1),
            cpi_usage=_count("integration.cpi", content),
            token_transfers=_count("economic.token_transfers", content),
            complex_math_operations=count_complex_math_operations(
                content, self.math_ops_warning_threshold, path
            ),
            time_dependent_logic=_count("economic.time_dependent", content),
            defi_patterns=self._detect_defi_patterns(content),
            economic_risk_factors=self._detect_risk_factors(content),
            anchor_specific_features=self._anchor_features(content),
        )

        logger.debug(
            f"{path or '<source>'}: {metrics.lines_of_code} loc, "
            f"{num_functions} fns, complexity {metrics.complexity.total}"
        )
        return metrics

    def _count_state_variables(self, content: str) -> int:
        """Public fields inside ``#[account]`` structs and enums.

        Other struct declarations are deliberately not counted, even when no
        annotated block exists.
        """
        field_rule = get_rule("structural.state_fields")
        return sum(
            field_rule.count(block)
            for block in get_rule("structural.state_blocks").matches(content)
        )

    def _max_nesting_depth(self, content: str) -> int:
        """Deepest brace nesting, ignoring braces in comments and strings."""
        max_depth = 0
        current_depth = 0

        for char in remove_comments_and_strings(content):
            if char == "{":
                current_depth += 1
                max_depth = max(max_depth, current_depth)
            elif char == "}":
                current_depth -= 1

        return max_depth

    def _extract_derives(self, content: str) -> Tuple[str, ...]:
        derives: List[str] = []
        for match in get_rule("anchor.derives").finditer(content):
            derives.extend(
                name.strip() for name in match.group(1).split(",") if name.strip()
            )
        return tuple(derives)

    def _detect_defi_patterns(self, content: str) -> Tuple[DeFiPattern, ...]:
        return tuple(
            DeFiPattern(type=pattern_type)
            for pattern_type, trigger in DEFI_TRIGGERS
            if trigger.fires(content)
        )

    def _detect_oracles(self, content: str) -> Tuple[OracleUsage, ...]:
        usages = []
        for oracle, rule in ORACLE_RULES:
            hits = rule.matches(content)
            if hits:
                usages.append(OracleUsage(oracle=oracle, functions=tuple(hits)))
        return tuple(usages)

    def _detect_risk_factors(self, content: str) -> Tuple[EconomicRiskFactor, ...]:
        factors = []
        for rule_id, label in RISK_FACTOR_RULES:
            count = _count(rule_id, content)
            if count > 0:
                factors.append(
                    EconomicRiskFactor(type=label, severity=Severity.MEDIUM, count=count, weight=1)
                )
        return tuple(factors)

    def _anchor_features(self, content: str) -> AnchorSpecificFeatures:
        return AnchorSpecificFeatures(
            account_validation=_count("anchor.account_validation", content),
            constraint_usage=_count("anchor.constraints", content),
            instruction_handlers=_count("anchor.instruction_handlers", content),
            program_derives=self._extract_derives(content),
            account_types=_count("anchor.account_types", content),
            seeds_usage=_count("anchor.seeds", content),
            bump_usage=_count("anchor.bumps", content),
            signer_checks=_count("anchor.signer_checks", content),
            owner_checks=_count("anchor.owner_checks", content),
            space_allocation=_count("anchor.space_allocation", content),
            rent_exemption=_count("anchor.rent_exemption", content),
        )


def extract(content: str, path: str = "", math_ops_warning_threshold: Optional[float] = None) -> RawFileMetrics:
    """Extract the raw metrics of one file."""
    return PatternExtractor(math_ops_warning_threshold).extract(content, path)
