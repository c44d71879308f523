from feedsync.cli import app

app()
