# Reference store backend
