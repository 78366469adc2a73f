from chainsh.policies import SHORT_CIRCUIT, UNCONDITIONAL, WaitMode


def test_unconditional_runs_everything():
    for operator in (";", "&&", "||", "&", None):
        assert UNCONDITIONAL.should_run(operator, 0)
        assert UNCONDITIONAL.should_run(operator, 1)


def test_short_circuit():
    assert SHORT_CIRCUIT.should_run("&&", 0)
    assert not SHORT_CIRCUIT.should_run("&&", 1)
    assert SHORT_CIRCUIT.should_run("||", 1)
    assert not SHORT_CIRCUIT.should_run("||", 0)
    assert SHORT_CIRCUIT.should_run(";", 1)
    assert SHORT_CIRCUIT.should_run("&", 1)


def test_wait_mode_values():
    assert WaitMode("per-stage") is WaitMode.PER_STAGE
    assert WaitMode("pipeline") is WaitMode.PIPELINE
