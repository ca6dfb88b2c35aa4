import json

import pytest

from ..scripts.run_simulation import main, parse_args, build_config
from ..backend.config import AgingMode, MultilevelFeedbackQueueConfig, PriorityConfig


class TestArguments:

    def test_priority_config(self):
        args = parse_args(["--policy", "PRIORITY", "--preemptive", "--aging",
                           "--aging-interval", "3", "--aging-mode", "exact", "--overhead", "1"])
        config = build_config(args)
        assert isinstance(config, PriorityConfig)
        assert config.preemptive and config.aging_enabled
        assert config.aging_interval == 3
        assert config.aging_mode is AgingMode.EXACT
        assert config.context_switch_overhead == 1

    def test_mlfq_config(self):
        args = parse_args(["--policy", "MLFQ", "--levels", "4", "--level-quantum", "0=3",
                           "--level-quantum", "3=20", "--aging-threshold", "6", "--no-aging"])
        config = build_config(args)
        assert isinstance(config, MultilevelFeedbackQueueConfig)
        assert config.level_quanta == [3, 4, 8, 20]
        assert config.aging_threshold == 6
        assert not config.aging_enabled

    def test_bad_level_quantum_is_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            parse_args(["--level-quantum", "fast"])
        assert exc.value.code == 2

    @pytest.mark.parametrize("argv", [
        ["--policy", "MLQ", "--quantum", "3"],
        ["--policy", "MLFQ", "--quantum", "3"],
        ["--preemptive"],
        ["--policy", "MLFQ", "--preemptive"],
        ["--policy", "RR", "--aging-interval", "4"],
        ["--policy", "MLQ", "--no-aging"],
        ["--policy", "PRIORITY", "--levels", "2"],
        ["--policy", "PRIORITY", "--level-quantum", "0=3"],
        ["--compare", "--quantum", "3"],
        ["--compare", "--plot", "out.png"],
        ["--compare", "--policy", "MLQ"],
    ])
    def test_flag_for_other_policy_is_usage_error(self, argv, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(argv)
        assert exc.value.code == 2
        assert "--" in capsys.readouterr().err

    def test_shared_flags_apply_everywhere(self):
        for policy in ("RR", "PRIORITY", "MLQ", "MLFQ"):
            args = parse_args(["--policy", policy, "--overhead", "2", "--process", "A:0:1"])
            assert build_config(args).context_switch_overhead == 2
        assert parse_args(["--compare", "--overhead", "1"]).compare


class TestMain:

    def test_sample_workload(self, capsys):
        assert main([]) == 0
        out = capsys.readouterr().out
        assert "Round Robin (Quantum=2)" in out
        assert "Average Waiting Time" in out
        assert "Gantt Chart" in out
        for name in ("P1", "P2", "P3", "P4", "P5"):
            assert name in out

    def test_custom_processes(self, capsys):
        assert main(["--quantum", "2", "--process", "A:0:4", "--process", "B:0:4"]) == 0
        out = capsys.readouterr().out
        assert "| A | B | A | B |" in out

    def test_configuration_error(self, capsys):
        assert main(["--quantum", "0"]) == 2
        assert "Error" in capsys.readouterr().out

    def test_workload_error(self, capsys):
        assert main(["--process", "A:x:4"]) == 2
        assert main(["--process", "A:0:0"]) == 2
        assert main(["--policy", "MLFQ", "--level-quantum", "9=1"]) == 2

    def test_compare(self, capsys):
        assert main(["--compare"]) == 0
        out = capsys.readouterr().out
        assert "Algorithm Comparison" in out
        assert "Multilevel Queue (4 queues)" in out
        assert "Lowest average waiting time" in out

    def test_plot_and_log(self, tmp_path, capsys):
        plot = tmp_path / "gantt.png"
        log = tmp_path / "events.json"
        assert main(["--policy", "MLQ", "--overhead", "1", "--plot", str(plot), "--log", str(log)]) == 0
        assert plot.exists()
        data = json.loads(log.read_text())
        assert data["process_events"]
