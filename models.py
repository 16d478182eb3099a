"""
Pydantic models describing the operations exposed by the Hunter.io MCP Server
"""
from typing import Any, Dict, List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

ParamType = Literal["string", "number"]


class ParamSpec(BaseModel):
    """A single named parameter accepted by an operation"""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParamType = "string"
    description: str = ""
    required: bool = False

    def json_schema(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description}


class OperationSpec(BaseModel):
    """Immutable descriptor of one callable operation and its Hunter.io endpoint"""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    path: str
    label: str
    params: Tuple[ParamSpec, ...] = ()
    # At least one of these keys must be present in the arguments
    required_one_of: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_alternatives(self):
        """Alternative fields must be declared parameters"""
        declared = {param.name for param in self.params}
        unknown = [name for name in self.required_one_of if name not in declared]
        if unknown:
            raise ValueError(f"Alternative fields {unknown} are not declared parameters of {self.name}")
        return self

    @property
    def required(self) -> List[str]:
        return [param.name for param in self.params if param.required]

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema advertised to MCP clients and enforced on tool arguments"""
        schema = {
            "type": "object",
            "properties": {param.name: param.json_schema() for param in self.params},
            "required": self.required,
        }
        if self.required_one_of:
            schema["anyOf"] = [{"required": [name]} for name in self.required_one_of]
        return schema
