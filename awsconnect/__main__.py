"""Allow ``python -m awsconnect``."""

from awsconnect.cli import app

app(prog_name="awsconnect")
