"""
Tool Call Parser - Parse function calls from various LLM output formats.

Supports:
- OpenAI format (native ``tool_calls`` from llama-cpp-python)
- XML format (``<tool_call>{...}</tool_call>`` blocks in the content)
"""

import json
import logging
import re
from typing import Dict, List

from .message import Completion, FunctionCall

logger = logging.getLogger(__name__)

TOOL_CALL_PATTERN = re.compile(r'(?:<tool_call>)+\s*(.*?)\s*</tool_call>', re.DOTALL)


def parse_xml_tool_calls(content: str) -> List[FunctionCall]:
    """
    Parse function calls from XML format with error recovery.

    Models output tool calls as:
    <tool_call>
    {"name": "tool_name", "arguments": {...}}
    </tool_call>

    This parser is robust against common LLM mistakes:
    - Double opening tags: <tool_call><tool_call>{...}
    - Extra whitespace/newlines
    - Text around the JSON object

    Args:
        content: Response content that may contain XML tool calls

    Returns:
        Function calls in the order they appear
    """
    calls = []

    for match in TOOL_CALL_PATTERN.findall(content):
        cleaned = _clean_tool_call_content(match)

        try:
            tool_data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            # Try to recover by extracting JSON more aggressively
            recovered = _extract_json_from_text(match)
            try:
                tool_data = json.loads(recovered) if recovered else None
            except json.JSONDecodeError:
                tool_data = None

            if tool_data is None:
                logger.error(f"Failed to parse tool call JSON: {e}\nContent: {match[:200]}")
                continue
            logger.warning(f"Recovered malformed tool call: {tool_data.get('name')}")

        if not isinstance(tool_data, dict) or 'name' not in tool_data:
            logger.warning(f"Tool call missing 'name' field, skipping: {cleaned[:100]}")
            continue

        try:
            calls.append(FunctionCall.from_dict(tool_data))
        except ValueError as e:
            logger.error(f"Skipping tool call: {e}")
            continue
        logger.info(f"Parsed tool call: {tool_data['name']}")

    return calls


def _clean_tool_call_content(text: str) -> str:
    """
    Clean up tool call content for JSON parsing.

    Removes leftover <tool_call> tags and surrounding whitespace.
    """
    return re.sub(r'</?tool_call>', '', text).strip()


def _extract_json_from_text(text: str) -> str:
    """
    Aggressively extract JSON from text with potential formatting issues.

    Finds the outermost {} braces and extracts content.

    Returns:
        Extracted JSON string or empty string if not found
    """
    first_brace = text.find('{')
    last_brace = text.rfind('}')

    if first_brace != -1 and last_brace != -1 and last_brace > first_brace:
        return text[first_brace:last_brace + 1]

    return ""


def has_incomplete_tool_call(content: str) -> bool:
    """
    Check if content has an opening tool call tag but no closing one.
    """
    return '<tool_call>' in content and '</tool_call>' not in content


def strip_tool_calls(content: str) -> str:
    """Remove tool call blocks, leaving any plain text the model wrote."""
    return TOOL_CALL_PATTERN.sub('', content).strip()


def parse_completion(message: Dict) -> Completion:
    """
    Turn an assistant message from the model into a Completion.

    OpenAI ``tool_calls`` take precedence over XML blocks in the content.

    Args:
        message: Assistant message dict (``content`` and optional ``tool_calls``)

    Returns:
        Completion with the plain response and any function calls
    """
    content = message.get('content') or ''
    calls: List[FunctionCall] = []

    if message.get('tool_calls'):
        for raw in message['tool_calls']:
            try:
                calls.append(FunctionCall.from_dict(raw))
            except ValueError as e:
                logger.error(f"Skipping tool call: {e}")
    elif '<tool_call>' in content:
        calls = parse_xml_tool_calls(content)
        if not calls and has_incomplete_tool_call(content):
            logger.warning("Model response contains an incomplete tool call")

    response = strip_tool_calls(content) if calls else content.strip()

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Parsed {len(calls)} function call(s) from model response")

    return Completion(response=response, function_calls=calls)
