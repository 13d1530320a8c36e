"""Core data models shared across nghelpers components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ComponentRecord:
    """Metadata recovered from a single `@Component(...)` decorator."""

    class_name: str
    selector: str
    file_path: str
    template: Optional[str] = None
    template_url: Optional[str] = None
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "className": self.class_name,
            "selector": self.selector,
        }
        if self.template is not None:
            payload["template"] = self.template
        if self.template_url is not None:
            payload["templateUrl"] = self.template_url
        payload["inputs"] = list(self.inputs)
        payload["outputs"] = list(self.outputs)
        payload["filePath"] = self.file_path
        return payload


@dataclass
class ScanResult:
    """Components found during one scan plus per-file error messages."""

    components: List[ComponentRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "components": [component.to_dict() for component in self.components],
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class FunctionRecord:
    """A registered function as persisted in the function cache."""

    function_id: str
    source: str
    sandboxed_artifact: Optional[str] = None

    def to_entry(self) -> Dict[str, Any]:
        return {"source": self.source, "sandboxedArtifact": self.sandboxed_artifact}

    @classmethod
    def from_entry(cls, function_id: str, payload: object) -> Optional["FunctionRecord"]:
        if not isinstance(payload, dict):
            return None
        source = payload.get("source")
        if not isinstance(source, str):
            return None
        artifact = payload.get("sandboxedArtifact")
        if not isinstance(artifact, str):
            artifact = None
        return cls(function_id=function_id, source=source, sandboxed_artifact=artifact)
