"""Desktop window and view-model bridging the remote client to Qt widgets."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

from PySide6.QtCore import QObject, Qt, Signal, Slot
from PySide6.QtWidgets import (
    QApplication,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from remotepad_core import (
    AppConfig,
    ConnectionStatus,
    DiagnosticsExporter,
    RemoteClient,
    StatusKind,
    build_doctor_payload,
    load_config,
    save_config,
)
from remotepad_core.logging_setup import configure_logging, get_logger, install_crash_hooks


class RemotePadViewModel(QObject):
    """Qt-facing wrapper; status arrives on worker threads and is re-emitted as a signal."""

    statusChanged = Signal(str, bool)
    peerHostChanged = Signal(str)
    diagnosticsPathChanged = Signal(str)

    def __init__(self, config: AppConfig | None = None, client: RemoteClient | None = None) -> None:
        super().__init__()
        self.config = config or load_config()
        self.client = client or RemoteClient(self.config)
        self.logger = get_logger("app")
        self._status_text = "Disconnected"
        self._connected = False
        self.diagnostics = DiagnosticsExporter()
        self.diagnostics_dir: Path | None = None
        self._diagnostics_path = ""
        # Queued signal emission keeps widget updates on the GUI thread.
        self._unsubscribe = self.client.subscribe(self._on_status)

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def peer_host(self) -> str:
        return self.client.peer.value.host

    @property
    def diagnostics_path(self) -> str:
        return self._diagnostics_path

    @property
    def buttons(self) -> tuple[str, ...]:
        return self.client.buttons

    def _on_status(self, status: ConnectionStatus) -> None:
        self._status_text = status.label
        self._connected = status.kind == StatusKind.CONNECTED
        self.statusChanged.emit(self._status_text, self._connected)

    @Slot()
    def connectToPeer(self) -> None:
        self.client.connect()

    @Slot()
    def disconnectFromPeer(self) -> None:
        self.client.disconnect()

    @Slot()
    def toggleConnection(self) -> None:
        if self._connected:
            self.disconnectFromPeer()
        else:
            self.connectToPeer()

    @Slot(str)
    def setPeerHost(self, host: str) -> None:
        value = host.strip()
        if not value or value == self.peer_host:
            return
        try:
            self.client.set_peer_host(value)
        except ValueError as exc:
            self.logger.warning(f"rejected peer host {value!r}: {exc}", extra={"event": "peer_rejected"})
            return
        self.config.peer.host = value
        save_config(self.config)
        self.peerHostChanged.emit(value)

    @Slot(str)
    def pressStart(self, label: str) -> None:
        self.client.press_start(label)

    @Slot(str)
    def pressEnd(self, label: str) -> None:
        self.client.press_end(label)

    @Slot()
    def exportDiagnostics(self) -> None:
        doctor = build_doctor_payload(self.config)
        zip_path = self.diagnostics.bundle(
            cfg=self.config,
            doctor_payload=doctor,
            recent_connection_events=self.client.recent_events(),
            output_dir=self.diagnostics_dir or Path(tempfile.gettempdir()),
        )
        self._diagnostics_path = str(zip_path)
        self.logger.info(f"diagnostics exported to {zip_path}", extra={"event": "diagnostics_export"})
        self.diagnosticsPathChanged.emit(self._diagnostics_path)

    def shutdown(self) -> None:
        self._unsubscribe()
        self.client.close()


class RemotePadWindow(QWidget):
    def __init__(self, vm: RemotePadViewModel) -> None:
        super().__init__()
        self.vm = vm
        self.setWindowTitle("RemotePad")

        self.status_label = QLabel(vm.status_text)
        self.host_edit = QLineEdit(vm.peer_host)
        self.host_edit.setPlaceholderText("Peer IP address")
        self.host_edit.editingFinished.connect(lambda: vm.setPeerHost(self.host_edit.text()))
        self.connect_button = QPushButton("Connect")
        self.connect_button.clicked.connect(vm.toggleConnection)
        self.diagnostics_button = QPushButton("Export diagnostics")
        self.diagnostics_button.clicked.connect(vm.exportDiagnostics)
        self.diagnostics_label = QLabel("")
        self.diagnostics_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)

        header = QHBoxLayout()
        header.addWidget(self.status_label, 1)
        header.addWidget(QLabel("Peer:"))
        header.addWidget(self.host_edit)
        header.addWidget(self.connect_button)

        pad = QGridLayout()
        left = [b for b in vm.buttons if b.startswith("L")]
        right = [b for b in vm.buttons if not b.startswith("L")]
        for column_offset, group in ((0, left), (3, right)):
            for idx, label in enumerate(group):
                button = QPushButton(label)
                button.setMinimumSize(70, 70)
                button.pressed.connect(lambda label=label: vm.pressStart(label))
                button.released.connect(lambda label=label: vm.pressEnd(label))
                pad.addWidget(button, idx // 2, column_offset + idx % 2)
        pad.setColumnMinimumWidth(2, 60)

        layout = QVBoxLayout(self)
        layout.addLayout(header)
        layout.addLayout(pad)

        footer = QHBoxLayout()
        footer.addWidget(self.diagnostics_button)
        footer.addWidget(self.diagnostics_label, 1)
        layout.addLayout(footer)

        vm.statusChanged.connect(self._render_status, Qt.ConnectionType.QueuedConnection)
        vm.diagnosticsPathChanged.connect(self.diagnostics_label.setText)
        self._render_status(vm.status_text, vm.connected)

    @Slot(str, bool)
    def _render_status(self, text: str, connected: bool) -> None:
        dot = "●"
        color = "#2e7d32" if connected else "#c62828"
        self.status_label.setText(f'<span style="color:{color}">{dot}</span> {text}')
        self.connect_button.setText("Disconnect" if connected else "Connect")


def run_gui() -> int:
    config = load_config()
    configure_logging(keep_files=config.diagnostics.keep_log_files)
    install_crash_hooks()
    logger = get_logger()

    app = QApplication(sys.argv)
    app.setApplicationName("RemotePad")

    vm = RemotePadViewModel(config)
    window = RemotePadWindow(vm)
    window.show()

    exit_code = app.exec()
    vm.shutdown()
    logger.info("app shutdown", extra={"event": "shutdown", "exit_code": int(exit_code)})
    return int(exit_code)
