"""Tests for environment expansion and macro replacement."""

from qc_automation.utils.macros import expand, replace_macro, resolve, scoped_variables


def test_expand_both_syntaxes() -> None:
    """$NAME and ${NAME} are both expanded."""
    env = {"ROOT": "C:\\tools", "NAME": "qc"}

    assert expand("$ROOT\\${NAME}", env) == "C:\\tools\\qc"


def test_unknown_references_are_left_untouched() -> None:
    """Unresolvable references survive expansion."""
    assert expand("$MISSING/${ALSO_MISSING}", {}) == "$MISSING/${ALSO_MISSING}"


def test_replace_macro_accepts_a_callable() -> None:
    """A callable resolver returning None leaves the reference."""
    resolver = {"BUILD_NUMBER": "42"}.get

    assert replace_macro("report-$BUILD_NUMBER-$JOB.xml", resolver) == "report-42-$JOB.xml"


def test_replace_macro_without_resolver() -> None:
    """No resolver means no change."""
    assert replace_macro("$X", None) == "$X"
    assert replace_macro(None, {"X": "1"}) is None


def test_resolve_expands_env_before_build_variables() -> None:
    """Environment expansion runs first, then build variables."""
    env = {"TS_NAME": "Smoke"}
    build = {"BUILD_NUMBER": "7", "TS_NAME": "ignored"}

    assert resolve("${TS_NAME}_$BUILD_NUMBER.xml", env, build) == "Smoke_7.xml"


def test_resolve_none_is_empty() -> None:
    """None resolves to an empty string."""
    assert resolve(None, {}) == ""


def test_scoped_variables_are_removed_on_exit() -> None:
    """Scoped values are visible inside the block only."""
    env = {"PATH": "/bin"}

    with scoped_variables(env, {"QC_DOMAIN": "DEFAULT"}):
        assert env["QC_DOMAIN"] == "DEFAULT"

    assert env == {"PATH": "/bin"}


def test_scoped_variables_restore_previous_values() -> None:
    """A pre-existing value is restored, even after an error."""
    env = {"QC_PROJECT": "outer"}

    try:
        with scoped_variables(env, {"QC_PROJECT": "inner"}):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert env == {"QC_PROJECT": "outer"}
