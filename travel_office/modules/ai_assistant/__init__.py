from .service import AIAssistant, build_context, parse_json_response

__all__ = ["AIAssistant", "build_context", "parse_json_response"]
