"""Sub-package reserved for the module and workspace explorer; it has no modules."""