# Focus session & streak engine for the Study Focus application
