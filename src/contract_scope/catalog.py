"""Factor catalog: display metadata for every reported field.

Paths are dotted paths into ``AnalysisReport.to_dict()``. The catalog is for
presentation and export only; nothing in the analysis reads it.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

# (path, display name, type, description)
_Entry = Tuple[str, str, str, str]

_BASIC: List[_Entry] = [
    ("repository", "Repository", "string", "Name of the analyzed repository"),
    ("repositoryUrl", "Repository URL", "string", "Location of the analyzed repository"),
    ("language", "Language", "string", "Programming language (e.g., rust)"),
    ("framework", "Framework", "string", "Framework used (anchor, metaplex, native, unknown)"),
    ("createdAt", "Created At", "date", "When the analysis was performed"),
]

_SCORES: List[_Entry] = [
    ("scores.structural.score", "Structural Score", "number", "Overall structural complexity score (0-100)"),
    ("scores.security.score", "Security Score", "number", "Overall security complexity score (0-100)"),
    ("scores.systemic.score", "Systemic Score", "number", "Overall systemic & integration complexity score (0-100)"),
    ("scores.economic.score", "Economic Score", "number", "Overall economic & functional complexity score (0-100)"),
    ("scores.structural.details.totalLinesOfCode", "Structural - Total Lines Of Code", "number", "Lines of code from structural analysis"),
    ("scores.structural.details.numPrograms", "Structural - Number Of Programs", "number", "Number of programs from structural analysis"),
    ("scores.structural.details.numFunctions", "Structural - Number Of Functions", "number", "Number of functions from structural analysis"),
    ("scores.structural.details.numStateVariables", "Structural - State Variables", "number", "Number of state variables from structural analysis"),
    ("scores.structural.details.avgCyclomaticComplexity", "Structural - Avg Cyclomatic Complexity", "number", "Average cyclomatic complexity from structural analysis"),
    ("scores.structural.details.maxCyclomaticComplexity", "Structural - Max Cyclomatic Complexity", "number", "Maximum cyclomatic complexity from structural analysis"),
    ("scores.structural.details.compositionDepth", "Structural - Composition Depth", "number", "Maximum block nesting depth from structural analysis"),
    ("scores.security.details.lowLevelOperations.unsafeCodeBlocks", "Security - Unsafe Blocks", "number", "Number of unsafe blocks"),
    ("scores.security.details.lowLevelOperations.memorySafetyIssues", "Security - Memory Safety Issues", "number", "Number of memory safety issues"),
    ("scores.security.details.errorHandling.panicUsage", "Security - Panic Usage", "number", "Usage of panic! macro"),
    ("scores.security.details.errorHandling.unwrapUsage", "Security - Unwrap Usage", "number", "Usage of .unwrap()"),
    ("scores.security.details.errorHandling.expectUsage", "Security - Expect Usage", "number", "Usage of .expect()"),
    ("scores.security.details.errorHandling.matchWithoutDefault", "Security - Match Without Default", "number", "Match expressions without a default arm"),
    ("scores.security.details.accessControlIssues", "Security - Access Control Issues", "number", "Number of access control issues"),
    ("scores.security.details.riskFactors", "Security - Risk Factors", "array", "Economic risk factors seen by the security dimension"),
    ("scores.systemic.details.externalDependencies.externalProgramCalls", "Systemic - External Program Calls", "number", "Number of external program calls"),
    ("scores.systemic.details.externalDependencies.uniqueExternalCalls", "Systemic - Unique External Calls", "number", "Number of distinct external programs called"),
    ("scores.systemic.details.externalDependencies.knownProtocolInteractions", "Systemic - Known Protocol Interactions", "array", "Known protocol interactions"),
    ("scores.systemic.details.standardInteractions.splTokenInteractions", "Systemic - SPL Token Interactions", "boolean", "Whether the program uses anchor_spl"),
    ("scores.systemic.details.standardInteractions.standardLibraryUsage", "Systemic - Standard Library Usage", "array", "Standard libraries in use"),
    ("scores.systemic.details.oracleUsage", "Systemic - Oracle Usage", "array", "Oracle usage details"),
    ("scores.systemic.details.cpiUsage", "Systemic - CPI Usage", "number", "Cross-program invocation count"),
    ("scores.systemic.details.constraintUsage", "Systemic - Constraint Usage", "number", "Anchor constraint count"),
    ("scores.systemic.details.accessControlPattern.type", "Systemic - Access Control Type", "string", "Type of access control pattern"),
    ("scores.systemic.details.accessControlPattern.complexity", "Systemic - Access Control Complexity", "string", "Complexity of access control pattern"),
    ("scores.economic.details.financialPrimitives.isAMM", "Economic - Is AMM", "boolean", "Whether the program is an AMM"),
    ("scores.economic.details.financialPrimitives.isLendingProtocol", "Economic - Is Lending Protocol", "boolean", "Whether the program is a lending protocol"),
    ("scores.economic.details.financialPrimitives.isVestingContract", "Economic - Is Vesting Contract", "boolean", "Whether the program is a vesting contract"),
    ("scores.economic.details.financialPrimitives.isStakingProtocol", "Economic - Is Staking Protocol", "boolean", "Whether the program is a staking protocol"),
    ("scores.economic.details.financialPrimitives.defiPatterns", "Economic - DeFi Patterns", "array", "Detected DeFi patterns"),
    ("scores.economic.details.tokenomics.tokenTransfers", "Economic - Token Transfers", "number", "Number of token transfers"),
    ("scores.economic.details.tokenomics.complexMathOperations", "Economic - Complex Math Operations", "number", "Number of complex math operations"),
    ("scores.economic.details.tokenomics.timeDependentLogic", "Economic - Time Dependent Logic", "number", "Time-dependent logic occurrences"),
    ("scores.economic.details.economicRiskFactors", "Economic - Risk Factors", "array", "Economic risk factors"),
    ("scores.economic.details.riskWeightSum", "Economic - Risk Weight Sum", "number", "Sum of count x weight over risk factors"),
]

_ANALYSIS_FACTORS: List[_Entry] = [
    ("analysisFactors.totalLinesOfCode", "Total Lines of Code", "number", "Total number of code lines (excluding comments and empty lines)"),
    ("analysisFactors.numPrograms", "Number of Programs", "number", "Number of Solana programs defined"),
    ("analysisFactors.numFunctions", "Number of Functions", "number", "Total number of functions defined"),
    ("analysisFactors.numStateVariables", "State Variables", "number", "Number of state variables in account structs"),
    ("analysisFactors.totalCyclomaticComplexity", "Total Cyclomatic Complexity", "number", "Sum of per-function cyclomatic complexity"),
    ("analysisFactors.avgCyclomaticComplexity", "Avg Cyclomatic Complexity", "number", "Average cyclomatic complexity per function"),
    ("analysisFactors.maxCyclomaticComplexity", "Max Cyclomatic Complexity", "number", "Maximum cyclomatic complexity in any function"),
    ("analysisFactors.compositionDepth", "Composition Depth", "number", "Maximum nesting depth in code blocks"),
    ("analysisFactors.functionVisibility.public", "Public Functions", "number", "Number of public functions"),
    ("analysisFactors.functionVisibility.private", "Private Functions", "number", "Number of private functions"),
    ("analysisFactors.functionVisibility.internal", "Internal Functions", "number", "Number of internal functions"),
    ("analysisFactors.viewFunctions", "View Functions", "number", "Number of view functions"),
    ("analysisFactors.pureFunctions", "Pure Functions", "number", "Number of pure functions"),
    ("analysisFactors.integerOverflowRisks", "Integer Overflow Risks", "number", "Number of potential integer overflow risks"),
    ("analysisFactors.accessControlIssues", "Access Control Issues", "number", "Number of access control issues"),
    ("analysisFactors.inputValidationIssues", "Input Validation Issues", "number", "Number of input validation issues"),
    ("analysisFactors.unsafeCodeBlocks", "Unsafe Code Blocks", "number", "Number of unsafe Rust code blocks"),
    ("analysisFactors.panicUsage", "Panic Usage", "number", "Usage of panic! macro"),
    ("analysisFactors.unwrapUsage", "Unwrap Usage", "number", "Usage of .unwrap() method"),
    ("analysisFactors.expectUsage", "Expect Usage", "number", "Usage of .expect() method"),
    ("analysisFactors.matchWithoutDefault", "Match Without Default", "number", "Number of match expressions without default arm"),
    ("analysisFactors.arrayBoundsChecks", "Array Bounds Checks", "number", "Number of array bounds checks"),
    ("analysisFactors.memorySafetyIssues", "Memory Safety Issues", "number", "Number of memory safety issues"),
    ("analysisFactors.externalProgramCalls", "External Program Calls", "number", "Number of calls to external Solana programs"),
    ("analysisFactors.uniqueExternalCalls", "Unique External Calls", "number", "Number of distinct external programs called"),
    ("analysisFactors.knownProtocolInteractions", "Known Protocol Interactions", "array", "List of known protocol interactions"),
    ("analysisFactors.standardLibraryUsage", "Standard Library Usage", "array", "List of standard libraries used"),
    ("analysisFactors.oracleUsage", "Oracle Usage", "array", "List of oracle integrations"),
    ("analysisFactors.cpiUsage", "CPI Usage", "number", "Cross-Program Invocation usage count"),
    ("analysisFactors.crossProgramInvocation", "Cross Program Invocations", "array", "Detailed CPI call information"),
    ("analysisFactors.accessControlPatterns.ownable", "Ownable Pattern", "number", "Usage of ownable access control pattern"),
    ("analysisFactors.accessControlPatterns.roleBased", "Role Based Pattern", "number", "Usage of role-based access control pattern"),
    ("analysisFactors.accessControlPatterns.custom", "Custom Access Control", "number", "Usage of custom access control patterns"),
    ("analysisFactors.tokenTransfers", "Token Transfers", "number", "Number of token transfer operations"),
    ("analysisFactors.complexMathOperations", "Complex Math Operations", "number", "Number of complex mathematical operations"),
    ("analysisFactors.timeDependentLogic", "Time-Dependent Logic", "number", "Number of time-dependent logic instances"),
    ("analysisFactors.defiPatterns", "DeFi Patterns", "array", "List of detected DeFi patterns"),
    ("analysisFactors.economicRiskFactors", "Economic Risk Factors", "array", "List of economic risk factors"),
    ("analysisFactors.anchorSpecificFeatures.accountValidation", "Account Validation", "number", "Number of account validation patterns"),
    ("analysisFactors.anchorSpecificFeatures.constraintUsage", "Constraint Usage", "number", "Number of Anchor constraints used"),
    ("analysisFactors.anchorSpecificFeatures.instructionHandlers", "Instruction Handlers", "number", "Number of instruction handler functions"),
    ("analysisFactors.anchorSpecificFeatures.programDerives", "Program Derives", "array", "List of derive macros used"),
    ("analysisFactors.anchorSpecificFeatures.accountTypes", "Account Types", "number", "Number of different account types used"),
    ("analysisFactors.anchorSpecificFeatures.seedsUsage", "Seeds Usage", "number", "Usage of PDA seeds"),
    ("analysisFactors.anchorSpecificFeatures.bumpUsage", "Bump Usage", "number", "Usage of bump seeds"),
    ("analysisFactors.anchorSpecificFeatures.signerChecks", "Signer Checks", "number", "Number of signer validation checks"),
    ("analysisFactors.anchorSpecificFeatures.ownerChecks", "Owner Checks", "number", "Number of owner validation checks"),
    ("analysisFactors.anchorSpecificFeatures.spaceAllocation", "Space Allocation", "number", "Account space allocation instances"),
    ("analysisFactors.anchorSpecificFeatures.rentExemption", "Rent Exemption", "number", "Rent exemption handling instances"),
    ("analysisFactors.filesAnalyzed", "Files Analyzed", "number", "Number of source files folded into the factors"),
]

_PERFORMANCE: List[_Entry] = [
    ("performance.analysisTimeMs", "Analysis Time (ms)", "number", "Time taken to complete the analysis"),
    ("performance.filesAnalyzed", "Files Analyzed", "number", "Source files analyzed"),
    ("performance.filesSkipped", "Files Skipped", "number", "Source files skipped (size limit)"),
    ("performance.filesErrored", "Files Errored", "number", "Source files that could not be read"),
]

_CATEGORIES = (
    ("basic", "Basic Information", "Repository and analysis metadata", _BASIC),
    ("scores", "Complexity Scores", "Overall complexity scores for each category", _SCORES),
    ("analysisFactors", "Analysis Factors", "Raw analysis metrics extracted from code", _ANALYSIS_FACTORS),
    ("performance", "Performance Metrics", "Analysis performance counters", _PERFORMANCE),
)

DEFAULT_FACTORS: List[str] = [
    "repository",
    "framework",
    "scores.structural.score",
    "scores.security.score",
    "scores.systemic.score",
    "scores.economic.score",
    "analysisFactors.totalLinesOfCode",
    "analysisFactors.numFunctions",
    "analysisFactors.numPrograms",
    "analysisFactors.avgCyclomaticComplexity",
    "analysisFactors.maxCyclomaticComplexity",
    "analysisFactors.unsafeCodeBlocks",
    "analysisFactors.panicUsage",
    "analysisFactors.unwrapUsage",
    "analysisFactors.accessControlIssues",
    "analysisFactors.cpiUsage",
    "analysisFactors.externalProgramCalls",
    "analysisFactors.oracleUsage",
    "analysisFactors.tokenTransfers",
    "analysisFactors.complexMathOperations",
    "analysisFactors.timeDependentLogic",
    "analysisFactors.defiPatterns",
    "analysisFactors.anchorSpecificFeatures.instructionHandlers",
    "analysisFactors.anchorSpecificFeatures.ownerChecks",
    "performance.analysisTimeMs",
]


def get_available_factors() -> Dict[str, Dict[str, Any]]:
    """Category key -> {category, description, factors: {path: {name, type, description}}}."""
    return {
        key: {
            "category": title,
            "description": description,
            "factors": {
                path: {"name": name, "type": kind, "description": desc}
                for path, name, kind, desc in entries
            },
        }
        for key, title, description, entries in _CATEGORIES
    }


def get_factor_value(report: Dict[str, Any], path: str, default: Any = "") -> Any:
    """Resolve a dotted path in a report dict, ``default`` when any step is missing."""
    current: Any = report
    for key in path.split("."):
        if not isinstance(current, dict) or current.get(key) is None:
            return default
        current = current[key]
    return current


_PREFIXES = re.compile(r"analysisFactors\.|scores\.")
_SEPARATORS = re.compile(r"[._]")


def create_friendly_name(path: str) -> str:
    """``analysisFactors.anchorSpecificFeatures.seedsUsage`` -> ``Anchorspecificfeatures Seedsusage``."""
    words = _SEPARATORS.sub(" ", _PREFIXES.sub("", path)).split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def infer_category(path: str) -> str:
    """Best-guess category label for a path absent from the catalog."""
    if path.startswith("scores.structural") or any(
        marker in path for marker in ("LinesOfCode", "Functions", "Complexity")
    ):
        return "Structural"
    if path.startswith("scores.security") or any(
        marker in path for marker in ("unsafe", "panic", "Security")
    ):
        return "Security"
    if path.startswith("scores.systemic") or any(
        marker in path for marker in ("cpi", "external", "oracle")
    ):
        return "Integration"
    if path.startswith("scores.economic") or any(
        marker in path for marker in ("token", "defi", "economic")
    ):
        return "Economic"
    if "anchor" in path:
        return "Anchor"
    if "performance" in path:
        return "Performance"
    return "Other"


def get_factor_info(path: str, catalog: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, str]:
    """Display name and category of a path, falling back to inferred values."""
    catalog = catalog or get_available_factors()
    for key, category in catalog.items():
        entry = category["factors"].get(path)
        if entry is not None:
            return {
                "name": entry.get("name") or create_friendly_name(path),
                "category": category.get("category") or key,
            }
    return {"name": create_friendly_name(path), "category": infer_category(path)}
