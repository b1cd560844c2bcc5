from futures_terminal.main import run

run()
