"""Instruction templates sent ahead of the user's code."""

from devpilot.schemas.analysis import AnalysisType

BASE_INSTRUCTION = (
    "You are an expert programmer and code reviewer. Format your entire response "
    "using simple HTML. Use <pre><code> for code blocks, <ul> and <li> for lists, "
    "and <b> for bold text. Do not include any text outside of the main HTML body content."
)

TASK_INSTRUCTIONS: dict[str, str] = {
    AnalysisType.EXPLAIN.value: "Explain the code in simple terms.",
    AnalysisType.FIND_BUGS.value: "Analyze the code for bugs. Provide a list of issues.",
    AnalysisType.REFACTOR.value: (
        "Refactor the code for clarity and efficiency. "
        "Provide the refactored code and explain changes."
    ),
    AnalysisType.ADD_COMMENTS.value: "Add comments to the code. Provide the complete commented code.",
    AnalysisType.UNIT_TESTS.value: "Write unit tests for the code. Provide the complete test code.",
}


def build_prompt(code: str, analysis_type: str) -> str:
    """Combine the HTML-format directive, the task clause and the code.

    Unknown analysis types get the "Explain Code" clause.  The code is
    appended as-is; JSON encoding happens on the wire.
    """
    if isinstance(analysis_type, AnalysisType):
        analysis_type = analysis_type.value
    task = TASK_INSTRUCTIONS.get(analysis_type, TASK_INSTRUCTIONS[AnalysisType.EXPLAIN.value])
    return f"{BASE_INSTRUCTION}\n\n{task}\n\nCode to analyze:\n{code}"
