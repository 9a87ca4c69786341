from scholarscout.cli import app

app()
