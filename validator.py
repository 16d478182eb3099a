"""
Argument validation for Hunter.io tool calls

Arguments are checked with jsonschema against the same input schema each
operation advertises to MCP clients. Validation is pure: it never mutates the
arguments and never touches the network.
"""
from typing import Any, Dict, List

from jsonschema import Draft202012Validator, ValidationError

from models import OperationSpec


class ArgumentValidationError(ValueError):
    """Raised when tool arguments do not satisfy an operation's schema"""

    def __init__(self, operation: str, problems: List[str]):
        self.operation = operation
        self.problems = problems
        super().__init__(f"Invalid arguments for {operation}: {'; '.join(problems)}")


def _describe(operation: OperationSpec, error: ValidationError) -> str:
    if error.validator == "anyOf" and not error.path:
        return f"at least one of {', '.join(operation.required_one_of)} is required"

    if error.path:
        field = ".".join(str(part) for part in error.path)
        return f"field '{field}': {error.message}"
    return error.message


def collect_problems(operation: OperationSpec, arguments: Any) -> List[str]:
    """
    Check arguments against an operation's input schema

    Args:
        operation: Operation whose schema applies
        arguments: Untyped argument bag supplied by the caller

    Returns:
        List of human-readable problems, empty when the arguments are valid
    """
    validator = Draft202012Validator(operation.input_schema())
    errors = sorted(validator.iter_errors(arguments), key=lambda error: [str(part) for part in error.path])
    return [_describe(operation, error) for error in errors]


def is_valid(operation: OperationSpec, arguments: Any) -> bool:
    return not collect_problems(operation, arguments)


def validate_arguments(operation: OperationSpec, arguments: Any) -> Dict[str, Any]:
    """
    Validate arguments and return the narrowed parameter view

    Only declared fields that are present are kept. Integral floats are
    narrowed to int so they are sent as "10" rather than "10.0".

    Raises:
        ArgumentValidationError: if the arguments do not satisfy the schema
    """
    problems = collect_problems(operation, arguments)
    if problems:
        raise ArgumentValidationError(operation.name, problems)

    params = {}
    for param in operation.params:
        if param.name not in arguments:
            continue
        value = arguments[param.name]
        if param.type == "number" and isinstance(value, float) and value.is_integer():
            value = int(value)
        params[param.name] = value
    return params
