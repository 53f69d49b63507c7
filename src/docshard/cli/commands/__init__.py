"""Click commands registered on the docshard group."""
