"""Long-running connectivity services started at the end of agent startup."""

from devagent.agent.services.process import ServiceExitError, run_service
from devagent.agent.services.ssh import SshServer
from devagent.agent.services.tailscale import TailscaleService

__all__ = ["ServiceExitError", "SshServer", "TailscaleService", "run_service"]
