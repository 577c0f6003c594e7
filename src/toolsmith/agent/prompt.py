"""
System prompt and request rendering for the collaborator.

The system prompt fixes the transform contract, the capability surface
and the reply format. Each request is rendered as one markdown user
message: the request, the catalog matches with their bands, and what
went wrong on the previous attempt.
"""

import json

from toolsmith.agent.collaborator import CollaboratorPhase, CollaboratorRequest
from toolsmith.scripts.sandbox import SAFE_BUILTINS, capability_names

TOOL_EXAMPLES = [
    {
        "slug": "base64-text",
        "name": "Base64 Encode / Decode",
        "description": "Encode or decode UTF-8 text to/from Base64",
        "section": "custom",
        "aliases": ["base64", "b64"],
        "input_type": "text",
        "output_type": "text",
        "allow_swap": True,
        "options": [
            {
                "id": "mode",
                "label": "Mode",
                "type": "select",
                "default": "encode",
                "options": [
                    {"value": "encode", "label": "Encode"},
                    {"value": "decode", "label": "Decode"},
                ],
            }
        ],
        "transform_code": (
            "text = str(input)\n"
            "if not text:\n"
            "    return ''\n"
            "try:\n"
            "    if opts.get('mode') == 'encode':\n"
            "        return base64.b64encode(text.encode('utf-8')).decode('ascii')\n"
            "    return base64.b64decode(text).decode('utf-8')\n"
            "except (ValueError, UnicodeDecodeError):\n"
            "    return {'type': 'error', 'message': 'Invalid input'}"
        ),
        "examples": [{"input": "Hello", "output": "SGVsbG8="}],
    },
    {
        "slug": "uuid-generator",
        "name": "UUID Generator",
        "description": "Generate random UUID v4 identifiers",
        "section": "custom",
        "aliases": ["uuid", "guid"],
        "input_type": "none",
        "output_type": "text",
        "options": [
            {
                "id": "count",
                "label": "Count",
                "type": "number",
                "default": 1,
                "min": 1,
                "max": 100,
                "step": 1,
            },
            {"id": "uppercase", "label": "Uppercase", "type": "toggle", "default": False},
        ],
        "transform_code": (
            "count = max(1, min(100, int(opts.get('count') or 1)))\n"
            "ids = [str(uuid.uuid4()) for _ in range(count)]\n"
            "if opts.get('uppercase'):\n"
            "    ids = [value.upper() for value in ids]\n"
            "return '\\n'.join(ids)"
        ),
    },
    {
        "slug": "case-converter",
        "name": "Case Converter",
        "description": "Convert text between camelCase, snake_case, kebab-case and more",
        "section": "custom",
        "aliases": ["camelcase", "snakecase", "kebabcase"],
        "input_type": "text",
        "output_type": "text",
        "options": [
            {
                "id": "case",
                "label": "Target case",
                "type": "select",
                "default": "snake",
                "options": [
                    {"value": "camel", "label": "camelCase"},
                    {"value": "snake", "label": "snake_case"},
                    {"value": "kebab", "label": "kebab-case"},
                ],
            }
        ],
        "transform_code": (
            "words = re.findall(r'[A-Z]?[a-z]+|[A-Z]+(?![a-z])|[0-9]+', str(input))\n"
            "words = [word.lower() for word in words]\n"
            "if not words:\n"
            "    return ''\n"
            "case = opts.get('case', 'snake')\n"
            "if case == 'camel':\n"
            "    return words[0] + ''.join(word.capitalize() for word in words[1:])\n"
            "if case == 'kebab':\n"
            "    return '-'.join(words)\n"
            "return '_'.join(words)"
        ),
        "examples": [{"input": "helloWorld", "output": "hello_world"}],
    },
    {
        "slug": "hash-text",
        "name": "Text Hash",
        "description": "Compute SHA-256, SHA-1 or MD5 digests of text",
        "section": "custom",
        "aliases": ["sha256", "md5", "checksum"],
        "input_type": "text",
        "output_type": "text",
        "options": [
            {
                "id": "algorithm",
                "label": "Algorithm",
                "type": "select",
                "default": "sha256",
                "options": [
                    {"value": "sha256", "label": "SHA-256"},
                    {"value": "sha1", "label": "SHA-1"},
                    {"value": "md5", "label": "MD5"},
                ],
            }
        ],
        "transform_code": (
            "digest = hashlib.new(opts.get('algorithm', 'sha256'))\n"
            "digest.update(str(input).encode('utf-8'))\n"
            "return digest.hexdigest()"
        ),
    },
]


SYSTEM_PROMPT = f"""You build small data-transformation tools for a developer toolbox.

Each tool takes one input (text, a file, two texts, or nothing), exposes a
few options, and returns a result. You either point the user to an existing
tool from the catalog or write a new tool definition.

## Phases

DECIDE: you are shown catalog matches for the request, each with a band.
- "close": the existing tool very likely does what was asked. If it fully
  covers the request, answer action "redirect" with its slug and a short reason.
- "similar": related tool. Use it as a style reference, do not redirect.
- "unrelated": ignore.
If a differently worded query might find a better match, answer "search" with
search_query. Otherwise answer "generate" (you may include the definition
right away).

GENERATE: answer "generate" with a complete tool_definition. Answer "test"
instead when you also want to supply test_input, a realistic sample input
for the smoke test.

## Transform contract

transform_code is the BODY of a Python function with parameters
(input, options). `opts` is an alias of `options`. Do not write the def line.
- input is a str for text tools, bytes for file tools, "" for input-less tools
- options maps each option id to its value
- return a str, or a dict such as {{"type": "error", "message": "..."}} for
  user errors; other values are rendered as text
- top-level `await` is allowed but rarely needed

Available globals: {', '.join(capability_names())}
Available builtins: {', '.join(sorted(SAFE_BUILTINS))}

FORBIDDEN (the tool is rejected if any appear):
- import statements, __import__, importlib
- open(), file, socket, network or HTTP access of any kind
- eval, exec, compile, globals, locals, vars, getattr, setattr, delattr
- dunder attributes such as .__class__ or .__globals__
- frame and traceback attributes such as .gi_frame, .f_back or .f_globals
- yield at the top level of the body; return the result instead
- os, sys, subprocess, threading, multiprocessing, time.sleep, asyncio.sleep
- chr(), bytes.fromhex, codecs.decode, \\x or \\u escape sequences
- `while True:` loops; loop over bounded ranges instead
- more than 20 `{{` characters or more than 10000 characters of code

## Definition rules

- slug: lowercase letters, digits and hyphens
- input_type: text | file | dual | none
- output_type: text | image | download | preview | table | image-result | color | diff
- option type: toggle | select | number | text; select options need a
  non-empty options list; number options need min <= max
- option ids must be unique
- include at least one example with input and expected output when the
  tool takes input

## Examples

{json.dumps(TOOL_EXAMPLES, indent=2)}
"""


def _format_matches(request: CollaboratorRequest) -> str:
    if not request.matches:
        return "No catalog entries matched."
    lines = []
    for banded in request.matches:
        tool = banded.match.tool
        lines.append(
            f"- `{tool.slug}` {tool.name} (score {banded.match.match_score}, "
            f"{banded.band.value}): {tool.description}"
        )
    return "\n".join(lines)


def _format_feedback(request: CollaboratorRequest) -> str:
    feedback = request.feedback
    if feedback is None:
        return ""

    lines = ["## Previous attempt was rejected", ""]
    verdict = feedback.verdict
    if verdict is not None:
        for issue in verdict.issues:
            lines.append(f"- Issue: {issue}")
        for concern in verdict.security_concerns or []:
            lines.append(f"- Security: {concern}")
        for suggestion in verdict.suggestions or []:
            lines.append(f"- Suggestion: {suggestion}")
    if feedback.runtime_error:
        lines.append(f"- Smoke test failed: {feedback.runtime_error}")
    lines.append("")
    lines.append("Write a corrected, complete definition.")
    return "\n".join(lines)


def render_request(request: CollaboratorRequest) -> str:
    """Render a collaborator request as a markdown user message.

    Args:
        request: Request to render

    Returns:
        Markdown prompt string
    """
    sections = [f"## Request\n\n{request.user_request}"]

    query_note = f" for query `{request.search_query}`" if request.search_query else ""
    sections.append(f"## Catalog matches{query_note}\n\n{_format_matches(request)}")

    if request.phase is CollaboratorPhase.DECIDE:
        sections.append(
            "## Task\n\nDECIDE: redirect to a close match, search again, or generate."
        )
    else:
        sections.append(
            f"## Task\n\nGENERATE: attempt {request.attempt} of "
            f"{request.max_attempts}. Reply with a complete tool_definition."
        )

    feedback = _format_feedback(request)
    if feedback:
        sections.append(feedback)

    return "\n\n".join(sections)
