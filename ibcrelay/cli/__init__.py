"""The yrly command line: configuration, chain, path, module, transaction and service commands."""