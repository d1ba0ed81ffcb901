"""Log and disc-content scanners shared by the dumping-tool front-ends."""
