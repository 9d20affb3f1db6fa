"""The `imp init` project setup wizard.

Runs as an explicit state machine:

    VALIDATE_CREDENTIAL -> RESOLVE_MODEL -> DISCOVER_DEVICES
        -> SELECT_PATHS -> FINALIZE -> DONE

Any stage may move to ABORTED on a fatal error. Recoverable problems
(rejected Api-Key, empty answers, declined confirmations) loop back to
the stage that raised them. Answers accumulate in an InitContext that
is committed to the ConfigStore and persisted once, at the very end.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from impcli.api.client import ImpClient
from impcli.api.errors import (
    AuthenticationError,
    ClientRequestError,
    ImpApiError,
    NotFoundError,
)
from impcli.cli.output import print_error, print_info, print_success, print_warning
from impcli.models.api import Model
from impcli.models.config import CONFIG_FILENAME
from impcli.storage.config_store import ConfigFileError, ConfigStore
from impcli.workflow.prompts import EmptyInputError, Prompter, PromptField, require

# Device id that can never exist; looking it up only tests the Api-Key.
PROBE_DEVICE_ID = "garbage"

ClientFactory = Callable[[str], ImpClient]


class Stage(str, Enum):
    """Workflow states."""

    VALIDATE_CREDENTIAL = "validate_credential"
    RESOLVE_MODEL = "resolve_model"
    DISCOVER_DEVICES = "discover_devices"
    SELECT_PATHS = "select_paths"
    FINALIZE = "finalize"
    DONE = "done"
    ABORTED = "aborted"


class ConfigConflictError(Exception):
    """Raised for contradictory flags or an existing project config."""


class WorkflowAbortedError(Exception):
    """A fatal error inside a stage; carries the user-facing message."""


@dataclass(frozen=True)
class InitFlags:
    """Command-line switches for `imp init`."""

    overwrite: bool = False
    keep_code: bool = False
    keep_device_code: bool = False
    keep_agent_code: bool = False

    def validate(self) -> None:
        """Reject keep-flag combinations that contradict each other.

        Raises:
            ConfigConflictError: If --keepCode is combined with a
                single-file keep flag.
        """
        if self.keep_code and (self.keep_device_code or self.keep_agent_code):
            raise ConfigConflictError(
                "Option '--keepCode' cannot be combined with either "
                "'--keepDeviceCode' or '--keepAgentCode'"
            )

    @property
    def skip_device_file(self) -> bool:
        return self.keep_code or self.keep_device_code

    @property
    def skip_agent_file(self) -> bool:
        return self.keep_code or self.keep_agent_code


@dataclass
class InitContext:
    """Answers gathered so far."""

    api_key: str | None = None
    model_id: str | None = None
    model_name: str | None = None
    model_created: bool = False
    devices: list[str] | None = None
    device_file: str | None = None
    agent_file: str | None = None


def default_code_filenames(model_name: str) -> tuple[str, str]:
    """Derive (device, agent) file names from a model name.

    >>> default_code_filenames("My Model")
    ('my_model.device.nut', 'my_model.agent.nut')
    """
    base = model_name.replace(" ", "_").lower()
    return f"{base}.device.nut", f"{base}.agent.nut"


class InitWorkflow:
    """Interactive setup of a project directory.

    Args:
        store: Config store for the project directory.
        prompter: Source of user answers.
        client_factory: Builds an API client for a candidate Api-Key.
        flags: Command-line switches.
    """

    def __init__(
        self,
        store: ConfigStore,
        prompter: Prompter,
        client_factory: ClientFactory,
        flags: InitFlags | None = None,
    ) -> None:
        self.store = store
        self.prompter = prompter
        self.client_factory = client_factory
        self.flags = flags or InitFlags()
        self.project_dir = store.local_path.parent
        self.context = InitContext()
        self.stage = Stage.VALIDATE_CREDENTIAL
        self._client: ImpClient | None = None
        self._handlers: dict[Stage, Callable[[], Stage]] = {
            Stage.VALIDATE_CREDENTIAL: self._validate_credential,
            Stage.RESOLVE_MODEL: self._resolve_model,
            Stage.DISCOVER_DEVICES: self._discover_devices,
            Stage.SELECT_PATHS: self._select_paths,
            Stage.FINALIZE: self._finalize,
        }

    def run(self) -> Stage:
        """Run the wizard to completion.

        Returns:
            Stage.DONE on success, Stage.ABORTED after a fatal error (the
            error has already been printed and nothing was persisted).
        """
        try:
            self._check_preconditions()
            while self.stage not in (Stage.DONE, Stage.ABORTED):
                self.stage = self._handlers[self.stage]()
        except (ConfigConflictError, ConfigFileError, WorkflowAbortedError) as e:
            print_error(str(e))
            self.stage = Stage.ABORTED
        except ImpApiError as e:
            print_error(e.message)
            self.stage = Stage.ABORTED
        finally:
            if self._client is not None:
                self._client.close()
                self._client = None
        return self.stage

    @property
    def client(self) -> ImpClient:
        if self._client is None:
            raise RuntimeError("API client used before the Api-Key was validated")
        return self._client

    # -- stages -----------------------------------------------------------

    def _check_preconditions(self) -> None:
        if self.store.load_local_config() is not None and not self.flags.overwrite:
            raise ConfigConflictError(
                f"{CONFIG_FILENAME} already exists. "
                "Specify option '--overwrite' to set new configuration."
            )
        self.flags.validate()

    def _validate_credential(self) -> Stage:
        stored = self.store.lookup("apiKey")
        label = f"Dev Tools Api-Key ({stored})" if stored else "Dev Tools Api-Key"
        try:
            api_key = require("Dev Tools Api-Key", self.prompter.ask(label, default=stored))
        except EmptyInputError:
            print_error("An Api-Key is required.")
            return Stage.VALIDATE_CREDENTIAL

        client = self.client_factory(api_key)
        try:
            client.lookup_device_by_id(PROBE_DEVICE_ID)
        except (AuthenticationError, ClientRequestError):
            client.close()
            print_error("Invalid Api-Key..")
            return Stage.VALIDATE_CREDENTIAL
        except ImpApiError as e:
            client.close()
            raise WorkflowAbortedError(f"Could not validate Api-Key: {e.message}") from e

        self._client = client
        self.context.api_key = api_key
        return Stage.RESOLVE_MODEL

    def _resolve_model(self) -> Stage:
        try:
            query = require("Model Id or Name", self.prompter.ask("Model Id or Name"))
        except EmptyInputError:
            return Stage.RESOLVE_MODEL

        model = self._find_model(query)
        if model is not None:
            if not self.prompter.confirm(f"Found a matching model '{model.name}', use this"):
                return Stage.RESOLVE_MODEL
            self.context.model_id = model.id
            self.context.model_name = model.name
            self.context.model_created = False
            return Stage.DISCOVER_DEVICES

        if not self.prompter.confirm(f"Create new model '{query}'"):
            return Stage.RESOLVE_MODEL

        with self._remote("Could not create model"):
            created = self.client.create_model(query)
        self.context.model_id = created.id
        self.context.model_name = created.name
        self.context.model_created = True
        return Stage.DISCOVER_DEVICES

    def _find_model(self, query: str) -> Model | None:
        """Look query up as a model id, then as a case-insensitive name."""
        try:
            return self.client.get_model(query)
        except (NotFoundError, ClientRequestError):
            pass

        with self._remote("Could not search models"):
            candidates = self.client.search_models_by_name(query)
        wanted = query.lower()
        return next((m for m in candidates if m.name.lower() == wanted), None)

    def _discover_devices(self) -> Stage:
        ctx = self.context
        if ctx.model_id is None or ctx.model_created:
            return Stage.SELECT_PATHS

        try:
            devices = self.client.lookup_devices_by_model(ctx.model_id)
        except ImpApiError:
            print_warning(f"Could not fetch devices assigned to '{ctx.model_name}'..")
            return Stage.SELECT_PATHS

        # The server filter is not trusted on its own
        ctx.devices = [d.id for d in devices if d.model_id == ctx.model_id]
        noun = "device" if len(ctx.devices) == 1 else "devices"
        print_info(f"Found {len(ctx.devices)} {noun} associated with '{ctx.model_name}'")
        return Stage.SELECT_PATHS

    def _select_paths(self) -> Stage:
        derived_device, derived_agent = default_code_filenames(self.context.model_name or "")
        default_device = self.store.get("local", "deviceFile") or derived_device
        default_agent = self.store.get("local", "agentFile") or derived_agent

        answers = self.prompter.ask_many(
            [
                PromptField("deviceFile", "Device code file", default_device),
                PromptField("agentFile", "Agent code file", default_agent),
            ]
        )
        self.context.device_file = answers.get("deviceFile", "").strip() or default_device
        self.context.agent_file = answers.get("agentFile", "").strip() or default_agent
        return Stage.FINALIZE

    def _finalize(self) -> Stage:
        if self.context.model_id is None or self.context.model_created:
            self._finalize_new_model()
        else:
            self._finalize_existing_model(self.context.model_id)

        self._commit()
        self.store.persist()
        print_success("Success! To add devices run:", "imp devices -a <deviceId>")
        return Stage.DONE

    # -- helpers ----------------------------------------------------------

    def _finalize_new_model(self) -> None:
        ctx = self.context
        if ctx.model_id is None:
            with self._remote("Could not create model"):
                created = self.client.create_model(ctx.model_name or "")
            ctx.model_id = created.id
            ctx.model_created = True
        ctx.devices = []

        # No code exists remotely yet
        self._write_code(ctx.device_file, "")
        self._write_code(ctx.agent_file, "")

    def _finalize_existing_model(self, model_id: str) -> None:
        ctx = self.context
        with self._remote("Could not fetch code revisions"):
            revisions = self.client.list_revisions(model_id)
            if not revisions:
                return
            latest = self.client.get_revision(model_id, revisions[0].version)

        if not self.flags.skip_device_file:
            self._write_code(ctx.device_file, latest.device_code or "")
        if not self.flags.skip_agent_file:
            self._write_code(ctx.agent_file, latest.agent_code or "")

    def _write_code(self, filename: str | None, content: str) -> None:
        if not filename:
            raise WorkflowAbortedError("No code file selected")
        target = self.project_dir / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise WorkflowAbortedError(f"Could not write {filename}: {e.strerror or e}") from e

    def _commit(self) -> None:
        ctx = self.context
        self.store.set("local", "apiKey", ctx.api_key)
        self.store.set("local", "modelId", ctx.model_id)
        self.store.set("local", "modelName", ctx.model_name)
        self.store.set("local", "deviceFile", ctx.device_file)
        self.store.set("local", "agentFile", ctx.agent_file)
        # None drops devices left over from a previous config
        self.store.set("local", "devices", ctx.devices)

    @contextmanager
    def _remote(self, failure: str) -> Iterator[None]:
        """Turn an API error inside the block into a fatal workflow error."""
        try:
            yield
        except ImpApiError as e:
            raise WorkflowAbortedError(f"{failure}: {e.message}") from e
