"""Transport collaborators: files, data URLs and repository publishing. Nothing here touches keys."""
