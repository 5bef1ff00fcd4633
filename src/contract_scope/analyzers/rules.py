"""Tagged extraction rules.

Every textual heuristic the extractor applies lives here as data: a
``rule_id``, a category, a regex and a weight. The extractor looks rules up
by id, so each one can be tested on its own.

Rule ids are ``<category>.<name>``. Weights only matter for the math
families (``math.*``); every other rule counts occurrences with weight 1.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple

from ..models import DeFiPatternType


class RuleCategory(str, Enum):
    STRUCTURAL = "structural"
    SECURITY = "security"
    INTEGRATION = "integration"
    ECONOMIC = "economic"
    ANCHOR = "anchor"
    MATH = "math"


@dataclass(frozen=True)
class ExtractionRule:
    """A single regex heuristic."""

    rule_id: str
    category: RuleCategory
    pattern: str
    weight: float = 1.0
    flags: int = 0
    description: str = ""
    _compiled: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern, self.flags))

    @property
    def regex(self) -> "re.Pattern[str]":
        return self._compiled

    def finditer(self, text: str) -> Iterator["re.Match[str]"]:
        return self._compiled.finditer(text)

    def count(self, text: str) -> int:
        """Number of non-overlapping matches in ``text``."""
        return sum(1 for _ in self._compiled.finditer(text))

    def matches(self, text: str) -> List[str]:
        """Full matched text of every match (group 0)."""
        return [m.group(0) for m in self._compiled.finditer(text)]


@dataclass(frozen=True)
class KeywordTrigger:
    """Fires once per file when any keyword occurs as a plain substring."""

    rule_id: str
    category: RuleCategory
    keywords: Tuple[str, ...]
    description: str = ""

    def fires(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


def _rule(rule_id: str, pattern: str, weight: float = 1.0, flags: int = 0, description: str = "") -> ExtractionRule:
    category = RuleCategory(rule_id.split(".", 1)[0])
    return ExtractionRule(rule_id, category, pattern, weight, flags, description)


# ---------------------------------------------------------------------------
# Counting rules
# ---------------------------------------------------------------------------

COUNT_RULES: Tuple[ExtractionRule, ...] = (
    # Structural
    _rule("structural.programs", r"#\[program\]", description="#[program] modules"),
    # Over-counts `fn` in non-declaration contexts; kept as the reference approximation
    _rule("structural.functions", r"fn\s+\w+", description="function declarations"),
    _rule("structural.public_functions", r"pub\s+fn"),
    _rule("structural.private_functions", r"(?<!pub\s)fn"),
    _rule(
        "structural.state_blocks",
        r"#\[account[^\]]*\]\s*pub\s+(?:struct|enum)\s+\w+\s*\{[^}]*\}",
        flags=re.DOTALL,
        description="#[account] annotated structs and enums",
    ),
    _rule("structural.state_fields", r"pub\s+\w+:", description="public fields inside a state block"),
    # Security
    _rule("security.unsafe_blocks", r"unsafe\s*\{"),
    _rule("security.panics", r"panic!"),
    _rule("security.unwraps", r"\.unwrap\(\)"),
    _rule("security.expects", r"\.expect\("),
    _rule("security.match_without_default", r"match\s+\w+\s*\{[^}]*\}(?!\s*else)"),
    # Anchor
    _rule("anchor.account_validation", r"AccountInfo"),
    _rule("anchor.constraints", r"#\[constraint\("),
    _rule("anchor.instruction_handlers", r"pub\s+fn\s+\w+[^{]*ctx:\s*Context"),
    _rule("anchor.derives", r"#\[derive\(([^)]+)\)\]"),
    _rule("anchor.account_types", r"struct\s+\w+"),
    _rule("anchor.seeds", r"seeds\s*="),
    _rule("anchor.bumps", r"bump\s*="),
    _rule("anchor.signer_checks", r"signer"),
    _rule("anchor.owner_checks", r"owner"),
    _rule("anchor.space_allocation", r"space\s*="),
    _rule("anchor.rent_exemption", r"rent|exempt"),
    # Integration
    _rule("integration.cpi", r"token::|invoke|invoke_signed|CpiContext"),
    # Economic
    _rule("economic.token_transfers", r"transfer|mint|burn"),
    _rule(
        "economic.time_dependent",
        r"Clock::get|unix_timestamp|timestamp|last_updated|created_at",
        flags=re.IGNORECASE,
    ),
    _rule("economic.overflow_risk", r"overflow|underflow"),
    _rule("economic.division_by_zero", r"/\s*0|/\s*zero"),
    _rule("economic.precision_loss", r"precision|rounding"),
)


# (rule id, risk factor label) pairs; one EconomicRiskFactor per label present
RISK_FACTOR_RULES: Tuple[Tuple[str, str], ...] = (
    ("economic.overflow_risk", "Integer Overflow"),
    ("economic.division_by_zero", "Division by Zero"),
    ("economic.precision_loss", "Precision Loss"),
)


# (oracle name, rule); the rule's matches become OracleUsage.functions
ORACLE_RULES: Tuple[Tuple[str, ExtractionRule], ...] = (
    ("Pyth", _rule("integration.oracle_pyth", r"pyth|Pyth")),
    ("Switchboard", _rule("integration.oracle_switchboard", r"switchboard|Switchboard")),
)


DEFI_TRIGGERS: Tuple[Tuple[DeFiPatternType, KeywordTrigger], ...] = (
    (
        DeFiPatternType.AMM,
        KeywordTrigger("economic.defi_amm", RuleCategory.ECONOMIC, ("swap", "add_liquidity")),
    ),
    (
        DeFiPatternType.LENDING,
        KeywordTrigger(
            "economic.defi_lending", RuleCategory.ECONOMIC, ("borrow", "repay", "liquidate")
        ),
    ),
    (
        DeFiPatternType.VESTING,
        KeywordTrigger("economic.defi_vesting", RuleCategory.ECONOMIC, ("vest", "unlock")),
    ),
    (
        DeFiPatternType.STAKING,
        KeywordTrigger("economic.defi_staking", RuleCategory.ECONOMIC, ("stake", "unstake")),
    ),
)


# ---------------------------------------------------------------------------
# Math-operation families
# ---------------------------------------------------------------------------


def _family(name: str, weight: float, patterns: List[str]) -> Tuple[ExtractionRule, ...]:
    return tuple(
        _rule(f"math.{name}_{i}", p, weight=weight) for i, p in enumerate(patterns)
    )


# Families are applied in this order; the first family to claim a span keeps it.
MATH_FAMILIES: Tuple[Tuple[str, Tuple[ExtractionRule, ...]], ...] = (
    (
        "safe_arithmetic",
        _family(
            "safe_arithmetic",
            0.8,
            [
                r"\.checked_add\s*\(",
                r"\.checked_sub\s*\(",
                r"\.checked_mul\s*\(",
                r"\.checked_div\s*\(",
                r"\.checked_rem\s*\(",
                r"\.checked_pow\s*\(",
                r"\.checked_ceil_div\s*\(",
                r"\.saturating_add\s*\(",
                r"\.saturating_sub\s*\(",
                r"\.saturating_mul\s*\(",
                r"\.saturating_pow\s*\(",
                r"\.wrapping_add\s*\(",
                r"\.wrapping_sub\s*\(",
                r"\.wrapping_mul\s*\(",
                r"\.wrapping_div\s*\(",
                r"\.wrapping_pow\s*\(",
            ],
        ),
    ),
    (
        "math_functions",
        _family(
            "math_functions",
            0.8,
            [
                r"\.sqrt\s*\(",
                r"\.integer_sqrt\s*\(",
                r"\.pow\s*\(",
                r"\.powf\s*\(",
                r"\.powi\s*\(",
                r"\.powu\s*\(",
                r"\.exp\s*\(",
                r"\.exp2\s*\(",
                r"\.ln\s*\(",
                r"\.log\s*\(",
                r"\.log2\s*\(",
                r"\.log10\s*\(",
                r"\bsin\b",
                r"\bcos\b",
                r"\btan\b",
                r"\basin\b",
                r"\bacos\b",
                r"\batan\b",
                r"\batan2\b",
                r"\bsinh\b",
                r"\bcosh\b",
                r"\btanh\b",
                r"\babs\b",
                r"\bfloor\b",
                r"\bceil\b",
                r"\bround\b",
                r"\btrunc\b",
                r"\bfract\b",
            ],
        ),
    ),
    (
        "fixed_point",
        _family(
            "fixed_point",
            0.8,
            [
                r"\bDecimal::",
                r"\bFixed::",
                r"\bfixed_point\b",
                r"\brescale\b",
                r"\bnormalize_decimal\b",
                r"\bto_scaled\b",
                r"\bfrom_scaled\b",
                r"\bwith_precision\b",
            ],
        ),
    ),
    ("constants", _family("constants", 0.6, [r"\bPI\b", r"\bE\b", r"\bINFINITY\b", r"\bNAN\b"])),
    ("financial", _family("financial", 0.4, [r"\bbps\b", r"\bcompound_interest\b"])),
    (
        "bitwise",
        _family(
            "bitwise",
            0.3,
            [
                r"<<|>>",
                r"\brotate_left\b",
                r"\brotate_right\b",
                r"\bcount_ones\b",
                r"\bcount_zeros\b",
                r"\bleading_zeros\b",
                r"\btrailing_zeros\b",
            ],
        ),
    ),
    (
        "helpers",
        _family(
            "helpers",
            0.5,
            [
                r"\bmath::\w+",
                r"\bcalculate_\w+\(",
                r"\bcompute_\w+\(",
                r"\bmultiply\(",
                r"\bdivide\(",
                r"\baverage\(",
            ],
        ),
    ),
    (
        "protocol",
        _family(
            "protocol",
            0.6,
            [
                r"\bsol_to_lamports\b",
                r"\blamports_to_sol\b",
                r"\bMath::\w+",
                r"\bmul_div\b",
                r"\bmul_div_u64\b",
                r"\bcalc_x_power\b",
                r"\bfibonacci\b",
                r"\bnormalize_decimal\b",
                r"\brestore_decimal\b",
                r"\bfloor_lot\b",
                r"\bceil_lot\b",
                r"\bswap_token_amount_base_in\b",
                r"\bswap_token_amount_base_out\b",
                r"\bcalc_total_without_take_pnl\b",
                r"\bget_max_.*_size_at_price\b",
                r"\bcalc_exact_vault_in_serum\b",
                r"\bsqrt_price\b",
                r"\btick_to_price\b",
                r"\bprice_to_tick\b",
                r"\bU128::\w+",
                r"\bU256::\w+",
            ],
        ),
    ),
)


# Control-flow constructs for the decision-point count
DECISION_RULES: Tuple[ExtractionRule, ...] = (
    _rule("structural.decision_if", r"\bif\b"),
    _rule("structural.decision_else_if", r"\belse\s+if\b"),
    _rule("structural.decision_while", r"\bwhile\b"),
    _rule("structural.decision_for", r"\bfor\b"),
    _rule("structural.decision_match", r"\bmatch\b"),
    _rule("structural.decision_and", r"&&"),
    _rule("structural.decision_or", r"\|\|"),
    _rule("structural.decision_try", r"\?"),
)

MATCH_BLOCK_RULE = _rule("structural.match_block", r"match\s+[^{]*\{([^}]*)\}")
MATCH_ARM_RULE = _rule("structural.match_arm", r"=>")
FUNCTION_BOUNDARY_RULE = _rule("structural.function_boundary", r"(?:pub\s+)?fn\s+\w+[^{]*\{")


def _index(rules) -> Dict[str, ExtractionRule]:
    index: Dict[str, ExtractionRule] = {}
    for rule in rules:
        if rule.rule_id in index:
            raise ValueError(f"Duplicate rule id: {rule.rule_id}")
        index[rule.rule_id] = rule
    return index


RULES: Dict[str, ExtractionRule] = _index(
    list(COUNT_RULES)
    + [rule for _, rule in ORACLE_RULES]
    + [rule for _, family in MATH_FAMILIES for rule in family]
    + list(DECISION_RULES)
    + [MATCH_BLOCK_RULE, MATCH_ARM_RULE, FUNCTION_BOUNDARY_RULE]
)


def get_rule(rule_id: str) -> ExtractionRule:
    """Look up a rule by id.

    Raises:
        KeyError: If no rule has this id
    """
    return RULES[rule_id]


def rules_by_category(category: RuleCategory) -> List[ExtractionRule]:
    return [rule for rule in RULES.values() if rule.category == category]
