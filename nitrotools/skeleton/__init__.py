"""Symbolic matrices and reconstruction of skinning skeletons."""