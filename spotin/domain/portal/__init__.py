"""Portal domain - Member self-service endpoints"""
