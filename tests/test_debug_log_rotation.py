from __future__ import annotations

from sortbridge.kernel.debug_log import DebugLogWriter, read_log_entries


def test_debug_log_rotation_respects_size_and_max_files(tmp_path):
    writer = DebugLogWriter(
        logs_dir=tmp_path / "logs",
        enabled=True,
        log_format="jsonl",
        max_file_bytes=256,
        max_files=2,
    )

    for idx in range(40):
        writer.write_entry(
            level="info",
            component="coordinator",
            kind="diagnostic",
            message="rotation-{0}".format(idx),
            data={"blob": "x" * 80, "idx": idx},
        )

    status = writer.status()
    assert status["logs_enabled"] is True
    assert status["logs_active_size_bytes"] > 0
    assert status["logs_max_file_bytes"] == 256
    assert status["logs_max_files"] == 2
    assert len(status["logs_rotated_files"]) <= 2
    assert not (tmp_path / "logs" / "debug.log.jsonl.3").exists()


def test_debug_log_fail_open_tracks_write_errors(tmp_path):
    blocked_path = tmp_path / "not-a-dir"
    blocked_path.write_text("file", encoding="utf-8")
    writer = DebugLogWriter(
        logs_dir=blocked_path,
        enabled=True,
        log_format="jsonl",
        max_file_bytes=1024,
        max_files=2,
    )

    writer.write_entry(
        level="info",
        component="coordinator",
        kind="diagnostic",
        message="should not raise",
    )

    status = writer.status()
    assert status["logs_write_errors"] >= 1


def test_disabled_writer_writes_nothing(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=False)
    writer.write_entry(level="info", component="coordinator", kind="lifecycle", message="ignored")

    assert writer.status()["logs_enabled"] is False
    assert not (tmp_path / "logs").exists()


def test_entries_carry_run_and_thread(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    writer.write_entry(
        level="error",
        component="coordinator",
        kind="lifecycle",
        message="run faulted",
        run_id="run_1",
        event_type="run.faulted",
        data={"fault_type": "ValueError"},
    )

    entries = read_log_entries(writer.active_log_file)
    assert len(entries) == 1
    assert entries[0]["run_id"] == "run_1"
    assert entries[0]["event_type"] == "run.faulted"
    assert entries[0]["thread"]
    assert entries[0]["data"] == {"fault_type": "ValueError"}
