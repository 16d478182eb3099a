"""
Tool catalog for the Hunter.io MCP Server
"""
from typing import Dict, List, Optional

from mcp.types import Tool

from models import OperationSpec, ParamSpec

FIND_EMAIL = OperationSpec(
    name="hunter_find_email",
    description="Find an email address using domain and name information.",
    path="/email-finder",
    label="find email",
    params=(
        ParamSpec(name="domain", description='The domain name of the company, e.g. "stripe.com"', required=True),
        ParamSpec(name="first_name", description="The first name of the person"),
        ParamSpec(name="last_name", description="The last name of the person"),
        ParamSpec(name="company", description="The name of the company"),
        ParamSpec(
            name="full_name",
            description="The full name of the person (alternative to first_name and last_name)",
        ),
    ),
)

VERIFY_EMAIL = OperationSpec(
    name="hunter_verify_email",
    description="Verify if an email address is valid and deliverable.",
    path="/email-verifier",
    label="verify email",
    params=(
        ParamSpec(name="email", description="The email address to verify", required=True),
    ),
)

DOMAIN_SEARCH = OperationSpec(
    name="hunter_domain_search",
    description="Find all the email addresses corresponding to a website or company name.",
    path="/domain-search",
    label="domain search",
    params=(
        ParamSpec(name="domain", description='The domain name to search for, e.g. "stripe.com"'),
        ParamSpec(name="company", description="The company name to search for (alternative to domain)"),
        ParamSpec(
            name="limit",
            type="number",
            description="The maximum number of emails to return (default: 10, max: 100)",
        ),
        ParamSpec(name="offset", type="number", description="The number of emails to skip (default: 0)"),
        ParamSpec(name="type", description="The type of emails to return (personal or generic)"),
    ),
    required_one_of=("domain", "company"),
)

EMAIL_COUNT = OperationSpec(
    name="hunter_email_count",
    description="Know how many email addresses we have for a domain or a company.",
    path="/email-count",
    label="email count",
    params=(
        ParamSpec(name="domain", description='The domain name to get the count for, e.g. "stripe.com"'),
        ParamSpec(name="company", description="The company name to get the count for (alternative to domain)"),
    ),
    required_one_of=("domain", "company"),
)

ACCOUNT_INFO = OperationSpec(
    name="hunter_account_info",
    description="Get information regarding your Hunter account.",
    path="/account",
    label="account info",
)

# Order is the order advertised to clients
OPERATIONS = (FIND_EMAIL, VERIFY_EMAIL, DOMAIN_SEARCH, EMAIL_COUNT, ACCOUNT_INFO)

_OPERATIONS_BY_NAME: Dict[str, OperationSpec] = {operation.name: operation for operation in OPERATIONS}


def get_operation(name: str) -> Optional[OperationSpec]:
    """Look up an operation by tool name"""
    return _OPERATIONS_BY_NAME.get(name)


def to_tool(operation: OperationSpec) -> Tool:
    return Tool(
        name=operation.name,
        description=operation.description,
        inputSchema=operation.input_schema(),
    )


def list_tools() -> List[Tool]:
    """MCP tool descriptors for every operation, in catalog order"""
    return [to_tool(operation) for operation in OPERATIONS]
