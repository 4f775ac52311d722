# Local API for building and parsing vault links
