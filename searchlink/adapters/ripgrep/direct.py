"""Direct ripgrep execution, used when the coordinator is unavailable."""

import logging
import subprocess
from pathlib import Path

from searchlink.domain.exceptions import IpcStage, SearchFailed
from searchlink.domain.value_objects import SearchOptions

logger = logging.getLogger(__name__)

# ripgrep exits 1 when nothing matched
RG_NO_MATCHES = 1


def build_rg_args(
    pattern: str,
    paths: list[str],
    options: SearchOptions | None = None,
    rg_command: str = "rg",
) -> list[str]:
    """Translate search options into a ripgrep command line.

    ``regexp`` takes the place of the positional pattern when set, as with
    ``rg -e``.
    """
    options = options or SearchOptions()
    args = [rg_command]

    if options.line_number:
        args.append("--line-number")
    if options.no_heading:
        args.append("--no-heading")
    if options.with_filename:
        args.append("--with-filename")
    if options.ignore_case:
        args.append("--ignore-case")
    if options.threads is not None:
        args.extend(["--threads", str(options.threads)])

    globs = []
    if options.glob:
        globs.append(options.glob)
    if options.globs:
        globs.extend(options.globs)
    for glob in globs:
        args.extend(["--glob", glob])

    if options.regexp is not None:
        args.extend(["--regexp", options.regexp])
    else:
        args.extend(["--regexp", pattern])

    args.append("--")
    args.extend(paths or ["."])
    return args


class DirectRipgrepSearch:
    """Runs ripgrep as a subprocess in the workspace directory."""

    def __init__(self, workspace: Path, rg_command: str = "rg", timeout: float | None = None):
        """Initialize direct search.

        Args:
            workspace: Working directory for ripgrep
            rg_command: ripgrep executable
            timeout: Seconds before the subprocess is abandoned (None = no limit)
        """
        self.workspace = Path(workspace)
        self.rg_command = rg_command
        self.timeout = timeout

    def search(
        self,
        pattern: str,
        paths: list[str],
        options: SearchOptions | None = None,
    ) -> str:
        """Run ripgrep and return its output.

        Raises:
            SearchFailed: If ripgrep is missing, times out, or reports an error
        """
        args = build_rg_args(pattern, paths, options, self.rg_command)
        logger.debug(f"Running {' '.join(args)} in {self.workspace}")

        try:
            result = subprocess.run(
                args,
                cwd=self.workspace,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise SearchFailed(
                f"ripgrep not found: {self.rg_command}",
                stage=IpcStage.SEND_REQUEST,
                cause=e,
                hint="Install ripgrep or set [fallback] rg_command in the config",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SearchFailed(
                f"ripgrep timed out after {self.timeout}s",
                stage=IpcStage.SEND_REQUEST,
                cause=e,
            ) from e

        if result.returncode == 0:
            return result.stdout
        if result.returncode == RG_NO_MATCHES:
            return ""
        raise SearchFailed(
            f"ripgrep failed (exit {result.returncode}): {result.stderr.strip()}",
            stage=IpcStage.SEND_REQUEST,
        )
