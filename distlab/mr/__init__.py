"""MapReduce coordinator, worker and the messages they exchange."""