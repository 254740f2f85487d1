"""Reviews domain - patient reviews and moderation"""
