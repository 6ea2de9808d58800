from sealcommit.cli import app

app()
