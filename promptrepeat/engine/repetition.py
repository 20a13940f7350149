"""Repetition transforms — one pure function per RepetitionMode.

    x2                prompt, blank line, prompt                     → 2
    x3                prompt three times                             → 3
    selective         [[marked]] instructions appended twice         → 1 + 0.2 × markers
                      explicit segments appended once                → 1 + 0.2 × segments
                      neither                                        → x2
    adaptive          by task type (see ``repeat_adaptive``)         → 3 / 2 / 1.1 / 1.2 / 2
    neural-reasoning  deep-reasoning markers, no duplication         → 1

``repetition_count`` is an advisory metric shown to users ("x2", "x1.4");
the arithmetic is kept exact rather than rounded.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from promptrepeat.engine.classifier import TaskClassifier
from promptrepeat.engine.types import RepetitionMode, TaskType, Transformation, parse_mode

# Non-greedy, scanned left to right; nested or overlapping markers are not special-cased.
MARKER_RE = re.compile(r"\[\[(.*?)\]\]")

SEGMENT_WEIGHT = 0.2
ADAPTIVE_LENGTH_THRESHOLD = 300

REPEATED_KEY_INSTRUCTIONS_HEADER = "\n\nREPEATED KEY INSTRUCTIONS:\n"
REPEATED_SEGMENTS_HEADER = "\n\nREPEATED SEGMENTS:\n"

REASONING_REINFORCEMENT = (
    "[REINFORCEMENT: LOGICAL ANCHORING]\n"
    "Carefully analyze the constraints provided in the initial prompt. "
    "Ensure every step of your reasoning is explicitly linked to these constraints. "
    "Avoid logical leaps and verify your final conclusion against the original requirements "
    "for absolute consistency."
)
CREATIVE_ANCHOR = "[CREATIVE ANCHOR: MAINTAIN NARRATIVE COHERENCE]"
CREATIVE_INSTRUCTION = (
    "[INSTRUCTION: Expand on the implicit themes while adhering strictly "
    "to the stylistic constraints defined above.]"
)
DEEP_REASONING_MARKER = "[SYSTEM: DEEP REASONING MODE ENABLED]"
DEEP_REASONING_INSTRUCTION = (
    "[INSTRUCTION: Think step-by-step. Analyze your own logic for contradictions. "
    "Verify every claim before finalizing.]"
)


def _repeat(prompt: str, times: int) -> str:
    return "\n\n".join([prompt] * times)


def repeat_x2(prompt: str, segments: Sequence[str] = ()) -> Transformation:
    return Transformation(text=_repeat(prompt, 2), repetition_count=2)


def repeat_x3(prompt: str, segments: Sequence[str] = ()) -> Transformation:
    return Transformation(text=_repeat(prompt, 3), repetition_count=3)


def repeat_selective(prompt: str, segments: Sequence[str] = ()) -> Transformation:
    """Repeat only the key instructions.

    Inline ``[[...]]`` markers win over explicit segments; the markers are
    stripped from the body and the marked text is listed twice at the end.
    """
    matches = MARKER_RE.findall(prompt)

    if matches:
        additions = REPEATED_KEY_INSTRUCTIONS_HEADER + "".join(f"- {m}\n" for m in matches)
        cleaned = MARKER_RE.sub(r"\1", prompt)
        return Transformation(
            text=f"{cleaned}{additions}{additions}",
            repetition_count=1 + len(matches) * SEGMENT_WEIGHT,
        )

    if segments:
        additions = REPEATED_SEGMENTS_HEADER + "".join(f"{s}\n" for s in segments)
        return Transformation(
            text=f"{prompt}{additions}",
            repetition_count=1 + len(segments) * SEGMENT_WEIGHT,
        )

    return repeat_x2(prompt)


def repeat_neural_reasoning(prompt: str, segments: Sequence[str] = ()) -> Transformation:
    return Transformation(
        text=f"{DEEP_REASONING_MARKER}\n{prompt}\n\n{DEEP_REASONING_INSTRUCTION}",
        repetition_count=1,
    )


def repeat_adaptive(prompt: str, task_type: TaskType) -> Transformation:
    """Pick a strategy from an already-classified task type.

    extraction / classification: x3 for short prompts, x2 otherwise
    reasoning: logical-anchoring reinforcement block
    creative: narrative anchor + style-adherence instruction
    anything else: x2
    """
    if task_type in (TaskType.EXTRACTION, TaskType.CLASSIFICATION):
        if len(prompt) < ADAPTIVE_LENGTH_THRESHOLD:
            result = repeat_x3(prompt)
        else:
            result = repeat_x2(prompt)
        return Transformation(result.text, result.repetition_count, task_type)

    if task_type is TaskType.REASONING:
        return Transformation(
            text=f"{prompt}\n\n{REASONING_REINFORCEMENT}",
            repetition_count=1.1,
            task_type=task_type,
        )

    if task_type is TaskType.CREATIVE:
        return Transformation(
            text=f"{CREATIVE_ANCHOR}\n{prompt}\n\n{CREATIVE_INSTRUCTION}",
            repetition_count=1.2,
            task_type=task_type,
        )

    result = repeat_x2(prompt)
    return Transformation(result.text, result.repetition_count, task_type)


# Modes that need nothing beyond the prompt and the optional segments.
TRANSFORMS: dict[RepetitionMode, Callable[[str, Sequence[str]], Transformation]] = {
    RepetitionMode.X2: repeat_x2,
    RepetitionMode.X3: repeat_x3,
    RepetitionMode.SELECTIVE: repeat_selective,
    RepetitionMode.NEURAL_REASONING: repeat_neural_reasoning,
}


async def transform(
    prompt: str,
    mode: RepetitionMode | str,
    segments: Sequence[str] = (),
    classifier: TaskClassifier | None = None,
) -> Transformation:
    """Apply ``mode`` to ``prompt``. Adaptive mode classifies the prompt first.

    Raises:
        UnsupportedModeError: ``mode`` is not one of the RepetitionMode values.
    """
    mode = parse_mode(mode)

    if mode is RepetitionMode.ADAPTIVE:
        if classifier is None:
            raise ValueError("adaptive mode requires a task classifier")
        task_type = await classifier.classify(prompt)
        return repeat_adaptive(prompt, task_type)

    return TRANSFORMS[mode](prompt, segments)
