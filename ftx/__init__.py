"""Socket based file and directory transfer between hosts."""
