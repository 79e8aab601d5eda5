"""
Terraform CLI client used to provision and tear down scenario infrastructure.
"""

import json
import logging
import os
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .exceptions import OutputMissing, ProvisioningFailed, TeardownFailed

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one Terraform invocation."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as matched against retryable patterns."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


def format_var_args(variables: Optional[Mapping[str, Any]]) -> List[str]:
    """Render input variables as ``-var name=value`` arguments.

    Strings are passed verbatim; anything else is JSON encoded so Terraform
    parses lists, maps, numbers and booleans with their proper types.
    """
    args: List[str] = []
    for name, value in (variables or {}).items():
        rendered = value if isinstance(value, str) else json.dumps(value)
        args.extend(["-var", f"{name}={rendered}"])
    return args


def match_retryable_error(output: str, retryable_errors: Mapping[str, str]) -> Optional[str]:
    """Return the pattern matching ``output``, or None if the failure is not retryable."""
    for pattern in retryable_errors:
        if re.search(pattern, output):
            return pattern
    return None


class TerraformClient:
    """
    Thin wrapper around the Terraform CLI.

    Every call runs ``terraform`` as a subprocess in the target directory with
    ``-no-color`` and ``-input=false`` so output is parseable and nothing ever
    waits for a prompt.
    """

    def __init__(
        self,
        binary: str = "terraform",
        timeout: int = 1800,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize Terraform client.

        Args:
            binary: Terraform executable name or path
            timeout: Timeout in seconds for each Terraform command
            sleep: Function used to wait between retries
        """
        self.binary = binary
        self.timeout = timeout
        self._sleep = sleep

    def _run(
        self,
        step: str,
        args: List[str],
        target: str,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """
        Run a Terraform command in the target directory.

        Args:
            step: Name of the step, used in logs and errors
            args: Arguments following the Terraform binary
            target: Terraform configuration directory
            env: Extra environment variables for the command

        Returns:
            CommandResult with exit code and captured output

        Raises:
            ProvisioningFailed: If the Terraform binary cannot be executed
        """
        cmd = [self.binary] + args
        run_env = dict(os.environ)
        run_env.update(env or {})
        run_env.setdefault("TF_IN_AUTOMATION", "1")

        logger.debug("Running %s in %s", " ".join(cmd), target)
        start_time = time.time()
        try:
            completed = subprocess.run(
                cmd,
                cwd=target,
                env=run_env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("terraform %s in %s timed out after %ds", step, target, self.timeout)
            stdout = e.stdout or ""
            if isinstance(stdout, bytes):
                stdout = stdout.decode("utf-8", errors="replace")
            return CommandResult(
                args=cmd,
                returncode=-1,
                stdout=stdout,
                stderr=f"terraform {step} timeout after {self.timeout} seconds",
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.error("Cannot execute %s: %s", self.binary, e)
            raise ProvisioningFailed(
                step, target, f"cannot execute '{self.binary}': {e}", attempts=1
            ) from e

        duration = time.time() - start_time
        result = CommandResult(
            args=cmd,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        logger.debug(
            "terraform %s exited with %d after %.1fs", step, result.returncode, duration
        )
        return result

    def version(self) -> str:
        """Return the Terraform version string."""
        result = self._run("version", ["version", "-json"], os.getcwd())
        if not result.success:
            raise ProvisioningFailed("version", os.getcwd(), result.output)
        try:
            return json.loads(result.stdout).get("terraform_version", "")
        except ValueError:
            # Older releases have no -json support; first line reads "Terraform vX.Y.Z"
            return result.stdout.splitlines()[0] if result.stdout else ""

    def init(self, target: str, env: Optional[Mapping[str, str]] = None) -> None:
        """
        Initialize the Terraform working directory.

        Raises:
            ProvisioningFailed: If the directory is missing or init fails;
                init is never retried
        """
        if not os.path.isdir(target):
            logger.error("Terraform directory %s does not exist", target)
            raise ProvisioningFailed("init", target, "terraform_dir does not exist")

        logger.info("Initializing %s", target)
        result = self._run(
            "init", ["init", "-upgrade=false", "-input=false", "-no-color"], target, env
        )
        if not result.success:
            raise ProvisioningFailed(
                "init", target, _summarize_error(result.output), output=result.output
            )

    def apply(
        self,
        target: str,
        variables: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> Tuple[bool, str]:
        """
        Run a single ``terraform apply``.

        Returns:
            Tuple of (success, combined output)
        """
        args = ["apply", "-input=false", "-auto-approve", "-no-color"] + format_var_args(variables)
        result = self._run("apply", args, target, env)
        return result.success, result.output

    def _with_retry(
        self,
        step: str,
        action: Callable[[], Tuple[bool, str]],
        target: str,
        max_retries: int,
        time_between_retries: float,
        retryable_errors: Mapping[str, str],
    ) -> Tuple[bool, str, int]:
        """Run ``action`` until it succeeds or fails in a non-retryable way.

        Returns:
            Tuple of (success, last output, attempts made)
        """
        max_retries = max(max_retries, 0)
        attempts = 0
        output = ""
        for attempt in range(max_retries + 1):
            attempts = attempt + 1
            success, output = action()
            if success:
                return True, output, attempts

            pattern = match_retryable_error(output, retryable_errors)
            if pattern is None:
                logger.error("terraform %s failed with a non-retryable error in %s", step, target)
                break
            if attempt >= max_retries:
                logger.error(
                    "terraform %s in %s still failing after %d attempts", step, target, attempts
                )
                break

            logger.warning(
                "terraform %s failed in %s (%s); retrying in %ss (attempt %d of %d)",
                step,
                target,
                retryable_errors[pattern],
                time_between_retries,
                attempts + 1,
                max_retries + 1,
            )
            self._sleep(time_between_retries)

        return False, output, attempts

    def apply_with_retry(
        self,
        target: str,
        variables: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        time_between_retries: float = 5.0,
        retryable_errors: Optional[Mapping[str, str]] = None,
    ) -> int:
        """
        Apply the configuration, retrying failures that match a retryable pattern.

        Returns:
            Number of apply attempts made

        Raises:
            ProvisioningFailed: If retries are exhausted or the error is not retryable
        """
        logger.info("Applying %s", target)
        success, output, attempts = self._with_retry(
            "apply",
            lambda: self.apply(target, variables, env),
            target,
            max_retries,
            time_between_retries,
            retryable_errors or {},
        )
        if not success:
            raise ProvisioningFailed(
                "apply", target, _summarize_error(output), attempts=attempts, output=output
            )
        return attempts

    def _read_output(self, target: str, name: str, env: Optional[Mapping[str, str]]) -> Any:
        result = self._run("output", ["output", "-no-color", "-json", name], target, env)
        if not result.success:
            logger.error("terraform output %s failed in %s: %s", name, target, result.output)
            raise OutputMissing(name, target)
        try:
            value = json.loads(result.stdout)
        except ValueError as e:
            raise OutputMissing(name, target) from e
        if value is None:
            raise OutputMissing(name, target)
        return value

    def output(self, target: str, name: str, env: Optional[Mapping[str, str]] = None) -> str:
        """
        Read a scalar output.

        Raises:
            OutputMissing: If the output does not exist or is null
        """
        value = self._read_output(target, name, env)
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return json.dumps(value)

    def output_map(
        self, target: str, name: str, env: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        """
        Read a map output as a dict of strings.

        Raises:
            OutputMissing: If the output does not exist or is not a map
        """
        value = self._read_output(target, name, env)
        if not isinstance(value, dict):
            logger.error("Output %s in %s is not a map: %r", name, target, value)
            raise OutputMissing(name, target)
        return {
            key: item if isinstance(item, str) else json.dumps(item)
            for key, item in value.items()
        }

    def destroy(
        self,
        target: str,
        variables: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
        max_retries: int = 3,
        time_between_retries: float = 5.0,
        retryable_errors: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Destroy everything managed by the configuration.

        Raises:
            TeardownFailed: If destroy fails after any retries
        """
        logger.info("Destroying %s", target)
        args = ["destroy", "-input=false", "-auto-approve", "-no-color"] + format_var_args(
            variables
        )

        def _destroy() -> Tuple[bool, str]:
            result = self._run("destroy", args, target, env)
            return result.success, result.output

        try:
            success, output, _ = self._with_retry(
                "destroy",
                _destroy,
                target,
                max_retries,
                time_between_retries,
                retryable_errors or {},
            )
        except ProvisioningFailed as e:
            raise TeardownFailed(target, e.message) from e
        if not success:
            raise TeardownFailed(target, _summarize_error(output), output=output)


def _summarize_error(output: str) -> str:
    """Pick the first ``Error:`` line of Terraform output, else the last line."""
    lines = [line.strip(" \t│╷╵") for line in output.splitlines()]
    lines = [line for line in lines if line]
    for line in lines:
        if line.startswith("Error:"):
            return line
    return lines[-1] if lines else "no output"
