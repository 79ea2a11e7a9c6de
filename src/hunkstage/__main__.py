from hunkstage.cli import app

app()
