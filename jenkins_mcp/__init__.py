from .clients.jenkins.client import JenkinsClient  # noqa: E402
from .clients.jenkins.protocol import JenkinsClientProtocol  # noqa: E402
from .version import __version__  # noqa: E402


__all__ = [
    "JenkinsClient",
    "JenkinsClientProtocol",
    "__version__",
]
