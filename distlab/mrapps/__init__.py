"""Map and reduce functions for use with the MapReduce worker."""