from fmodpack.cli_launcher import run

run()
