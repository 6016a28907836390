"""
State Management Service

Local record of what was last applied, kept in .webstack/state.yml.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from webstack.constants import STATE_DIR, STATE_FILE
from webstack.models.headers import HeaderMode
from webstack.models.operation import PhaseFlags, PlanRequest
from webstack.models.results import DeploymentResult


class StateService:
    """
    Load and update the local deployment record.

    Responsibilities:
    - Remember the phase flags of the last apply (used by update)
    - Remember the last header mode
    - Track per-host last status and completed phases
    """

    def __init__(self, project_dir: Path):
        self.state_path = Path(project_dir) / STATE_DIR / STATE_FILE

    def load_state(self) -> Dict[str, Any]:
        """Load the state file, empty when nothing was applied yet."""
        if not self.state_path.exists():
            return {}
        try:
            data = yaml.safe_load(self.state_path.read_text())
        except yaml.YAMLError:
            return {}
        return data if isinstance(data, dict) else {}

    def save_state(self, state: Dict[str, Any]) -> None:
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(yaml.safe_dump(state, default_flow_style=False, sort_keys=True))

    def last_flags(self) -> Optional[PhaseFlags]:
        """Phase flags of the last recorded apply, or None."""
        last_apply = self.load_state().get("last_apply")
        if not last_apply:
            return None
        return PhaseFlags.from_dict(last_apply.get("phases"))

    def last_header_mode(self) -> Optional[HeaderMode]:
        value = self.load_state().get("header_mode")
        try:
            return HeaderMode(value) if value else None
        except ValueError:
            return None

    def record_apply(
        self,
        plan: PlanRequest,
        results: List[DeploymentResult],
        header_mode: Optional[HeaderMode] = None,
    ) -> None:
        """
        Record an apply. Phase flags are only remembered when at least one
        host succeeded and the plan actually ran phases.
        """
        state = self.load_state()
        now = datetime.now().isoformat(timespec="seconds")

        hosts = state.setdefault("hosts", {})
        for result in results:
            entry = hosts.setdefault(result.host, {})
            entry["last_status"] = result.status.value
            entry["last_operation"] = plan.operation.value
            entry["updated_at"] = now
            done = set(entry.get("phases", []))
            done.update(result.phases_completed)
            entry["phases"] = sorted(done)

        if any(result.is_success for result in results):
            if plan.phases.any:
                state["last_apply"] = {
                    "operation": plan.operation.value,
                    "phases": plan.phases.to_dict(),
                    "timestamp": now,
                }
            if header_mode is not None:
                state["header_mode"] = header_mode.value

        self.save_state(state)

    def forget_hosts(self, host_names: Iterable[str]) -> None:
        """Drop hosts whose stack was removed."""
        state = self.load_state()
        hosts = state.get("hosts", {})
        for name in host_names:
            hosts.pop(name, None)
        if not hosts:
            state.pop("last_apply", None)
            state.pop("header_mode", None)
        self.save_state(state)
