from speechapp.io.surface import InstallTarget, TerminalSurface
from speechapp.menu.script import MENU_PROMPT


def test_empty_text_shows_menu():
    surface = TerminalSurface()
    assert surface.text == MENU_PROMPT

    surface.set_text("nomor satu")
    assert surface.text == "nomor satu"

    surface.set_text("")
    assert surface.text == MENU_PROMPT


def test_trigger_toggles():
    surface = TerminalSurface()
    surface.set_trigger_enabled(False)
    assert surface.trigger_enabled is False


def test_install_directive_is_recorded_and_printed(capsys):
    surface = TerminalSurface()
    surface.direct_install(InstallTarget.RECOGNIZER)

    assert surface.install_requests == [InstallTarget.RECOGNIZER]
    assert "pip install" in capsys.readouterr().out


def test_every_install_target_has_instructions():
    for target in InstallTarget:
        assert target.instructions
