"""
Connectivity test Lambda for MongoDB Atlas.

Runs inside the VPC, fetches the database user from Secrets Manager and
checks that the cluster answers through the network peering.
"""
