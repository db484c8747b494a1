class BaseJenkinsMCPException(Exception):
    pass
