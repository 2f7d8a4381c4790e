from chronicle.cli.app import app

app()
