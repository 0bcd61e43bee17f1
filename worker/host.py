"""
Background computation host.

The host runs in its own process with its own AnalysisSession and talks to
the caller only through two queues. AnalysisWorker is the caller-side handle.
"""

import copy
import logging
import multiprocessing
import queue
import traceback
from typing import Any, Callable, Dict, Iterator, Optional

from core.errors import ModelLoadError, ModelNotReadyError
from utils.config_loader import load_config
from .protocol import Command, Response, Message
from .session import AnalysisSession

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: int = logging.INFO):
    """Configure root logging for a worker or CLI process."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


class AnalysisHost:
    """
    Dispatches protocol commands against one AnalysisSession.

    Every outcome, including failures, is posted as a Response message;
    handle() never raises. After a terminal response the host stops.
    """

    def __init__(self, post: Callable[[Message], None], config: Optional[Dict[str, Any]] = None):
        """
        Initialize analysis host.

        Args:
            post: Sends a message to the caller
            config: Configuration dictionary owned by this host
        """
        self.post = post
        self.session = AnalysisSession(config=copy.deepcopy(config or {}))
        self.running = True

    def handle(self, message: Message):
        """Process one request message."""
        try:
            command = Command(message.type)
        except ValueError:
            logger.warning(f"Unknown request type: {message.type}")
            self._emit(Response.ERROR, f"Unknown request type: {message.type}", terminal=False)
            return

        try:
            if command == Command.INIT:
                self._on_init(message.data)
            elif command == Command.LOAD_MODEL:
                self._on_load_model(message.data)
            elif command == Command.CALCULATE:
                self._on_calculate()
            elif command == Command.SHUTDOWN:
                logger.info("Shutdown requested")
                self._stop()
        except Exception as e:
            logger.error(f"Unrecoverable error while handling '{command.value}': {e}", exc_info=True)
            self._emit(Response.ERROR, f"{e}\n{traceback.format_exc()}", terminal=True)

    def _on_init(self, data):
        self.session.bind_surface(data if isinstance(data, dict) else {})
        self._emit(Response.READY)

    def _on_load_model(self, url):
        if not url:
            self._emit(Response.MODEL_LOAD_ERROR, "No model URL given", terminal=True)
            return
        try:
            self.session.load_model(str(url))
        except ModelLoadError as e:
            logger.error(f"Error loading model: {e}")
            self._emit(Response.MODEL_LOAD_ERROR, str(e), terminal=True)
            return
        self._emit(Response.MODEL_LOADED, {
            'buildings': [b.label for b in self.session.classification.buildings],
            'units': list(self.session.classification.unit_names),
        })

    def _on_calculate(self):
        if not self.session.is_model_loaded:
            logger.warning("Model not loaded yet - calculation refused")
            self._emit(Response.MODEL_NOT_READY, "Model not loaded yet")
            return

        def progress(text: str):
            self._emit(Response.PROCESSING, text)

        try:
            sunlight = self.session.run_sunlight(progress)
            self._emit(Response.SUNLIGHT_CALC_FINISH, sunlight.to_dict())

            view = self.session.run_field_view(progress)
            self._emit(Response.FIELD_VIEW_CALC_FINISH, view.to_dict())
        except ModelNotReadyError as e:
            self._emit(Response.MODEL_NOT_READY, str(e))
            return

        snapshot = self.session.render_snapshot()
        chart = self.session.render_chart()
        self._emit(Response.FINISHED, {
            'units': len(self.session.classification.units),
            'snapshot': snapshot,
            'chart': chart,
        }, terminal=True)

    def _emit(self, response: Response, data=None, terminal: bool = False):
        self.post(Message(response, data))
        if terminal:
            self._stop()

    def _stop(self):
        self.session.release()
        self.running = False


def run_host(requests, responses, config: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None):
    """
    Worker process entry point: serve requests until a terminal response.

    Args:
        requests: Queue of request dicts
        responses: Queue receiving response dicts
        config: Configuration dictionary (takes precedence over config_path)
        config_path: YAML config file loaded inside the worker
    """
    setup_logging()
    if config is None:
        config = load_config(config_path)
    host = AnalysisHost(lambda message: responses.put(message.to_dict()), config)
    logger.info("Analysis worker started")

    while host.running:
        payload = requests.get()
        try:
            message = Message.from_dict(payload)
        except (ValueError, AttributeError) as e:
            responses.put(Message(Response.ERROR, f"Invalid request: {e}").to_dict())
            continue
        host.handle(message)

    logger.info("Analysis worker stopped")


class AnalysisWorker:
    """
    Caller-side handle on a background analysis process.

    Posting never blocks; results arrive as Message events via poll(),
    wait_for() or events().
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_path: Optional[str] = None):
        """
        Initialize analysis worker handle.

        Args:
            config: Configuration dictionary passed to the worker
            config_path: YAML config file loaded by the worker if config is None
        """
        self.config = config
        self.config_path = config_path
        self._context = multiprocessing.get_context('spawn')
        self._requests = None
        self._responses = None
        self._process = None

    def start(self) -> 'AnalysisWorker':
        """Spawn the worker process."""
        if self._process is not None:
            raise RuntimeError("Worker already started")
        self._requests = self._context.Queue()
        self._responses = self._context.Queue()
        self._process = self._context.Process(
            target=run_host,
            args=(self._requests, self._responses, self.config, self.config_path),
            daemon=True
        )
        self._process.start()
        logger.info(f"Analysis worker process started (pid {self._process.pid})")
        return self

    def post(self, command: Command, data=None):
        """Send a request to the worker."""
        if self._process is None:
            raise RuntimeError("Worker not started")
        self._requests.put(Message(Command(command), data).to_dict())

    def poll(self, timeout: float = 0.0) -> Optional[Message]:
        """Next event, or None if none arrives within timeout."""
        if self._responses is None:
            return None
        try:
            payload = self._responses.get(timeout=timeout) if timeout else self._responses.get_nowait()
        except queue.Empty:
            return None
        return Message.from_dict(payload)

    def wait_for(
        self,
        *types: Response,
        timeout: Optional[float] = None,
        on_event: Optional[Callable[[Message], None]] = None
    ) -> Optional[Message]:
        """
        Block until an event of one of the given types arrives.

        Other events are passed to on_event. Returns None on timeout or if
        the worker exits first.

        Args:
            types: Response types to wait for
            timeout: Seconds to wait per event (None waits indefinitely)
            on_event: Handler for events that do not match

        Returns:
            Matching message or None
        """
        for message in self.events(timeout=timeout):
            if message.type in types:
                return message
            if on_event:
                on_event(message)
        return None

    def events(self, timeout: Optional[float] = None) -> Iterator[Message]:
        """
        Yield events until a terminal one, worker exit or timeout.

        Args:
            timeout: Seconds to wait for each event (None waits indefinitely)
        """
        while True:
            message = self.poll(timeout=timeout if timeout is not None else 0.5)
            if message is None:
                if timeout is not None:
                    return
                if self.is_alive():
                    continue
                # Drain what the worker posted before exiting
                message = self.poll()
                if message is None:
                    return
            yield message
            if message.is_terminal:
                return

    def is_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def join(self, timeout: Optional[float] = None):
        if self._process is not None:
            self._process.join(timeout)

    def terminate(self):
        """Kill the worker; in-flight work is discarded."""
        if self._process is not None and self._process.is_alive():
            self._process.terminate()
            self._process.join(5)
            logger.info("Analysis worker terminated")

    def __enter__(self) -> 'AnalysisWorker':
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.terminate()
