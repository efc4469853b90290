"""Demo tools with canned results: weather lookup and email sending."""

import logging

logger = logging.getLogger(__name__)

WEATHER_TOOL_DEF = {
    "name": "get_weather",
    "description": "Get current weather for a location",
    "parameters": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "City name"
            }
        },
        "required": ["location"]
    }
}

EMAIL_TOOL_DEF = {
    "name": "send_email",
    "description": "Send an email to someone",
    "parameters": {
        "type": "object",
        "properties": {
            "email": {
                "type": "string",
                "description": "Email address"
            },
            "subject": {
                "type": "string",
                "description": "Email subject"
            },
            "message": {
                "type": "string",
                "description": "Email message"
            }
        },
        "required": ["email", "subject", "message"]
    }
}


def get_weather(location: str) -> str:
    return f"Weather in {location}: Sunny, 72°F"


def send_email(email: str, subject: str, message: str) -> str:
    # Nothing is sent; the message body is only logged
    logger.info(f"Pretending to send email to {email} ({len(message)} characters)")
    return f'Email sent to {email} with subject "{subject}"'


def register_builtin_tools(registry):
    """Register get_weather and send_email with a ToolRegistry."""
    for definition, function in ((WEATHER_TOOL_DEF, get_weather), (EMAIL_TOOL_DEF, send_email)):
        registry.register_function(
            name=definition["name"],
            description=definition["description"],
            function=function,
            parameters=definition["parameters"]
        )
